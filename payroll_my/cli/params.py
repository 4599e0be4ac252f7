"""Shared click parameter types."""

from decimal import Decimal, InvalidOperation

import click


class MoneyType(click.ParamType):
    """Ringgit amount parsed to Decimal."""

    name = "amount"

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            return value
        try:
            amount = Decimal(str(value).replace(",", ""))
        except InvalidOperation:
            self.fail(f"'{value}' is not a valid amount", param, ctx)
        if not amount.is_finite():
            self.fail(f"'{value}' is not a valid amount", param, ctx)
        return amount


MONEY = MoneyType()
