from setuptools import setup, find_packages
import re

# Read version from payroll_my/__init__.py
with open('payroll_my/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='payroll-my',
    version=version,
    packages=find_packages(include=['payroll_my', 'payroll_my.*']),
    package_data={
        'payroll_my.sdk.taxes': ['rules/*/*.yaml'],
    },
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
    ],
    extras_require={
        'mcp': [
            'mcp[cli]>=1.0.0,<2',
        ],
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'payroll-my=payroll_my.cli.__main__:main',
            'payroll-my-mcp=payroll_my.mcp.server:run_server',
        ],
    },
    author='Personal',
    description='Malaysian statutory payroll deductions: EPF, SOCSO, EIS and PCB.',
    python_requires='>=3.10',
)
