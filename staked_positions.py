import asyncio
import sys

from reader_for_liquidity_positions import (
    REWARD_DECIMALS,
    REWARD_SYMBOL,
    WALLET_ADDRESS,
    connect,
    get_contracts,
    get_staked_count,
    iter_staked_positions,
)
from tick_amm_model import format_units

''' USAGE
python3 staked_positions.py
Lists the wallet's positions staked in the Slipstream gauge with their claimable AERO.
'''


def show_staked_position(staked):
    position = staked.position
    print(f"\nStaked Position Token ID: {position.token_id}")
    print("Details:", {
        "token0": position.token0,
        "token1": position.token1,
        "tickSpacing": position.tick_spacing,
        "tickLower": position.tick_lower,
        "tickUpper": position.tick_upper,
        "liquidity": str(position.liquidity),
        "tokensOwed0": str(position.tokens_owed0),
        "tokensOwed1": str(position.tokens_owed1),
    })
    print(f"Claimable {REWARD_SYMBOL} Emissions (raw): {staked.earned}")
    print(f"Claimable {REWARD_SYMBOL} Emissions (human-readable): {format_units(staked.earned, REWARD_DECIMALS)}")


async def list_staked_positions(gauge, position_manager, account: str) -> int:
    staked_count = await get_staked_count(gauge, account)
    print(f"User has {staked_count} staked CL positions in the gauge.")

    async for staked in iter_staked_positions(gauge, position_manager, account, staked_count):
        show_staked_position(staked)
    return staked_count


async def main():
    try:
        w3 = await connect()
        gauge, position_manager = get_contracts(w3)
        await list_staked_positions(gauge, position_manager, WALLET_ADDRESS)
    except Exception as e:
        print(f"Error fetching staked positions: {e}", file=sys.stderr)


if __name__ == "__main__":
    asyncio.run(main())
