"""Tick math for concentrated liquidity pools.

price = 1.0001 ** tick
sqrtPriceX96 = sqrt(price) * 2 ** 96

Square-root prices are Q64.96 integers computed bit for bit like the
on-chain TickMath library, so results match what the pool itself uses.
"""

from decimal import ROUND_HALF_UP, Decimal, localcontext

MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

Q96 = 2 ** 96
Q192 = 2 ** 192
MAX_UINT256 = 2 ** 256 - 1

# Wide enough for uint256 values without rounding
DECIMAL_PRECISION = 80

# (bit of |tick|, 1/sqrt(1.0001) ** bit as Q128.128)
_TICK_FACTORS = [
    (0x2, 0xfff97272373d413259a46990580e213a),
    (0x4, 0xfff2e50f5f656932ef12357cf3c7fdcc),
    (0x8, 0xffe5caca7e10e4e61c3624eaa0941cd0),
    (0x10, 0xffcb9843d60f6159c9db58835c926644),
    (0x20, 0xff973b41fa98c081472e6896dfb254c0),
    (0x40, 0xff2ea16466c96a3843ec78b326b52861),
    (0x80, 0xfe5dee046a99a2a811c461f1969c3053),
    (0x100, 0xfcbe86c7900a88aedcffc83b479aa3a4),
    (0x200, 0xf987a7253ac413176f2b074cf7815e54),
    (0x400, 0xf3392b0822b70005940c7a398e4b70f3),
    (0x800, 0xe7159475a2c29b7443b29c7fa6e889d9),
    (0x1000, 0xd097f3bdfd2022b8845ad8f792aa5825),
    (0x2000, 0xa9f746462d870fdf8a65dc1f90e061e5),
    (0x4000, 0x70d869a156d2a1b890bb3df62baf32f7),
    (0x8000, 0x31be135f97d08fd981231505542fcfa6),
    (0x10000, 0x9aa508b5b7a84e1c677de54f3e99bc9),
    (0x20000, 0x5d6af8dedb81196699c329225ee604),
    (0x40000, 0x2216e584f5fa1ea926041bedfe98),
    (0x80000, 0x48a170391f7dc42444e8fa2),
]


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """Return sqrt(1.0001 ** tick) as a Q64.96 integer, rounded up."""
    if tick < MIN_TICK or tick > MAX_TICK:
        raise ValueError(f"Tick {tick} out of range [{MIN_TICK}, {MAX_TICK}]")

    abs_tick = abs(tick)
    ratio = 0xfffcb933bd6fad37aa2d162d1a594001 if abs_tick & 0x1 else 1 << 128
    for bit, factor in _TICK_FACTORS:
        if abs_tick & bit:
            ratio = (ratio * factor) >> 128

    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Q128.128 -> Q64.96
    return (ratio >> 32) + (0 if ratio % (1 << 32) == 0 else 1)


def get_tick_at_sqrt_ratio(sqrt_ratio_x96: int) -> int:
    """Return the greatest tick whose sqrt ratio is <= ``sqrt_ratio_x96``."""
    if sqrt_ratio_x96 < MIN_SQRT_RATIO or sqrt_ratio_x96 > MAX_SQRT_RATIO:
        raise ValueError(f"sqrt_ratio_x96 {sqrt_ratio_x96} out of range")

    tick_low, tick_high = MIN_TICK, MAX_TICK
    while tick_low < tick_high:
        tick_mid = (tick_low + tick_high + 1) // 2
        if get_sqrt_ratio_at_tick(tick_mid) <= sqrt_ratio_x96:
            tick_low = tick_mid
        else:
            tick_high = tick_mid - 1
    return tick_low


def get_amount0_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    numerator1 = liquidity << 96
    numerator2 = sqrt_ratio_b_x96 - sqrt_ratio_a_x96
    return (numerator1 * numerator2 // sqrt_ratio_b_x96) // sqrt_ratio_a_x96


def get_amount1_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    return liquidity * (sqrt_ratio_b_x96 - sqrt_ratio_a_x96) // Q96


def get_amounts_for_liquidity(current_tick: int, sqrt_price_x96: int,
                              tick_lower: int, tick_upper: int, liquidity: int) -> tuple[int, int]:
    """Token0/token1 base units held by ``liquidity`` between two ticks.

    Below the range everything sits in token0, at or above the upper tick
    everything sits in token1, in between it is split at the current price.
    """
    sqrt_lower = get_sqrt_ratio_at_tick(tick_lower)
    sqrt_upper = get_sqrt_ratio_at_tick(tick_upper)

    if current_tick < tick_lower:
        return get_amount0_delta(sqrt_lower, sqrt_upper, liquidity), 0
    if current_tick < tick_upper:
        return (
            get_amount0_delta(sqrt_price_x96, sqrt_upper, liquidity),
            get_amount1_delta(sqrt_lower, sqrt_price_x96, liquidity),
        )
    return 0, get_amount1_delta(sqrt_lower, sqrt_upper, liquidity)


def sqrt_ratio_to_price(sqrt_ratio_x96: int, decimals0: int, decimals1: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        raw_price = Decimal(sqrt_ratio_x96 * sqrt_ratio_x96) / Decimal(Q192)
        return raw_price.scaleb(decimals0 - decimals1)


def price_at_tick(tick: int, decimals0: int, decimals1: int) -> Decimal:
    return sqrt_ratio_to_price(get_sqrt_ratio_at_tick(tick), decimals0, decimals1)


def to_human(raw: int, decimals: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return Decimal(raw).scaleb(-decimals)


def format_units(raw: int, decimals: int) -> str:
    whole, _, fraction = f"{to_human(raw, decimals):f}".partition(".")
    return f"{whole}.{fraction.rstrip('0') or '0'}"


def to_significant(value, digits: int = 6) -> str:
    """Round ``value`` half-up to ``digits`` significant digits, plain notation."""
    value = Decimal(value)
    if value == 0:
        return "0"

    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        quantum = Decimal(1).scaleb(value.adjusted() - digits + 1)
        rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)
        return f"{rounded.normalize():f}"
