from decimal import Decimal, localcontext

NATIVE_DECIMALS = 18


def format_units(value: int, decimals: int) -> str:
    """Render base units as a plain decimal string, e.g. 1500000 @ 6 -> '1.5'."""
    with localcontext() as ctx:
        ctx.prec = 100
        amount = Decimal(int(value)).scaleb(-int(decimals)).normalize()
    return f"{amount:f}"
