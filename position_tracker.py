import asyncio
import sys

from reader_for_liquidity_positions import (
    POOL_CA,
    REWARD_DECIMALS,
    REWARD_SYMBOL,
    TOKEN0,
    TOKEN0_DECIMALS,
    TOKEN0_SYMBOL,
    TOKEN1,
    TOKEN1_DECIMALS,
    TOKEN1_SYMBOL,
    WALLET_ADDRESS,
    call_with_retry,
    connect,
    get_contracts,
    get_pool_state,
    get_staked_count,
    iter_staked_positions,
)
from tick_amm_model import (
    format_units,
    get_amounts_for_liquidity,
    price_at_tick,
    sqrt_ratio_to_price,
    to_human,
    to_significant,
)

''' USAGE
python3 position_tracker.py
Price range, holdings and claimable AERO of every position the wallet staked
in the Slipstream gauge, valued at the pool's current price.
'''


def compute_position_values(position, pool_state) -> dict:
    """Human-readable price range and holdings of a position.

    The pool snapshot only supplies the current price and tick; the price
    bounds are derived from the position's own ticks.
    """
    current_price = sqrt_ratio_to_price(pool_state.sqrt_price_x96, TOKEN0_DECIMALS, TOKEN1_DECIMALS)
    min_price = price_at_tick(position.tick_lower, TOKEN0_DECIMALS, TOKEN1_DECIMALS)
    max_price = price_at_tick(position.tick_upper, TOKEN0_DECIMALS, TOKEN1_DECIMALS)

    amount0, amount1 = get_amounts_for_liquidity(
        pool_state.tick,
        pool_state.sqrt_price_x96,
        position.tick_lower,
        position.tick_upper,
        position.liquidity,
    )
    amount0 = to_human(amount0, TOKEN0_DECIMALS)
    amount1 = to_human(amount1, TOKEN1_DECIMALS)

    return {
        "min_price": to_significant(min_price),
        "max_price": to_significant(max_price),
        "current_price": to_significant(current_price),
        "in_range": position.tick_lower <= pool_state.tick < position.tick_upper,
        "amount0": to_significant(amount0),
        "amount1": to_significant(amount1),
        "amount0_in_token1": to_significant(amount0 * current_price),
    }


def show_position(staked, pool_state):
    position = staked.position
    print('-' * 54)
    print(f"Staked #{staked.index} -> Token ID {position.token_id}")
    print(f"  Pair: {position.token0} / {position.token1} | tickSpacing {position.tick_spacing}")
    print(f"  Ticks: [{position.tick_lower}, {position.tick_upper}] | liquidity {position.liquidity}")

    if not position.matches_pair(TOKEN0, TOKEN1):
        print(f"  ⚠️  Unexpected pair for the {TOKEN0_SYMBOL}/{TOKEN1_SYMBOL} pool, skipping price and amount computation")
        print(f"  Tokens owed (raw): {position.tokens_owed0} / {position.tokens_owed1}")
        print(f"  Claimable {REWARD_SYMBOL} (raw): {staked.earned}")
        return

    values = compute_position_values(position, pool_state)
    status = "🟢 In range" if values["in_range"] else "🔴 Out of range"

    print(f"  Price range: {values['min_price']} - {values['max_price']} {TOKEN1_SYMBOL} per {TOKEN0_SYMBOL}")
    print(f"  Current price: 1 {TOKEN0_SYMBOL} = {values['current_price']} {TOKEN1_SYMBOL} | {status}")
    print("  Liquidity :")
    print(f"     + {values['amount0']} {TOKEN0_SYMBOL}      ({values['amount0_in_token1']} {TOKEN1_SYMBOL})")
    print(f"     + {values['amount1']} {TOKEN1_SYMBOL}")
    print("  Unclaimed Fees :")
    print(f"    + {format_units(position.tokens_owed0, TOKEN0_DECIMALS)} {TOKEN0_SYMBOL}")
    print(f"    + {format_units(position.tokens_owed1, TOKEN1_DECIMALS)} {TOKEN1_SYMBOL}")
    print(f"  Claimable {REWARD_SYMBOL} : {format_units(staked.earned, REWARD_DECIMALS)} (raw {staked.earned})")


async def check_gauge_pool(gauge):
    try:
        gauge_pool = await call_with_retry(lambda: gauge.functions.pool().call())
    except Exception as e:
        print(f"⚠️  Could not read the gauge pool ({e}), continuing with {POOL_CA}", file=sys.stderr)
        return
    if gauge_pool.lower() != POOL_CA.lower():
        print(f"⚠️  Gauge pool {gauge_pool} differs from tracked pool {POOL_CA}", file=sys.stderr)


async def track_positions(w3, gauge, position_manager, account: str) -> int:
    await check_gauge_pool(gauge)

    pool_state = await get_pool_state(w3)
    if not pool_state.unlocked:
        print("🔴 Pool is locked, prices below come from the last snapshot")
    print(f"=== Pool: {POOL_CA} | tick {pool_state.tick}")

    staked_count = await get_staked_count(gauge, account)
    print(f"Total staked positions: {staked_count}")

    async for staked in iter_staked_positions(gauge, position_manager, account, staked_count):
        show_position(staked, pool_state)
    return staked_count


async def main():
    print(f"=== Wallet: {WALLET_ADDRESS}")
    try:
        w3 = await connect()
        gauge, position_manager = get_contracts(w3)
        await track_positions(w3, gauge, position_manager, WALLET_ADDRESS)
    except Exception as e:
        print(f"Error fetching staked positions: {e}", file=sys.stderr)


if __name__ == "__main__":
    asyncio.run(main())
