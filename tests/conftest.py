"""Offline contract doubles for the gauge, the position manager and the pool."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import encode

from reader_for_liquidity_positions import POOL_CA, SLOT0_TYPES, TOKEN0, TOKEN1
from tick_amm_model import Q96

ACCOUNT = "0x8A9bBEbA43E3cEc41E7922E13644cE37abE63D2f"
OTHER_TOKEN = "0x940181a94A35A4569E4529A3CDfB74e38FD98631"


def position_tuple(token0=TOKEN0, token1=TOKEN1, tick_lower=-100, tick_upper=100,
                   liquidity=1_000_000, owed0=0, owed1=0):
    """Shape of the ``positions(tokenId)`` return value."""
    return (
        0, "0x0000000000000000000000000000000000000000",
        token0, token1, 100, tick_lower, tick_upper, liquidity,
        0, 0, owed0, owed1,
    )


def make_gauge(token_ids, earned=None, pool=POOL_CA):
    gauge = MagicMock()
    gauge.functions.stakedLength.return_value.call = AsyncMock(return_value=len(token_ids))
    gauge.functions.stakedByIndex.return_value.call = AsyncMock(side_effect=list(token_ids))
    gauge.functions.earned.return_value.call = AsyncMock(
        side_effect=list(earned if earned is not None else [0] * len(token_ids))
    )
    gauge.functions.pool.return_value.call = AsyncMock(return_value=pool)
    return gauge


def make_position_manager(positions):
    position_manager = MagicMock()
    position_manager.functions.positions.return_value.call = AsyncMock(side_effect=list(positions))
    return position_manager


def make_w3(sqrt_price_x96=Q96, tick=0, unlocked=True):
    w3 = MagicMock()
    w3.eth.call = AsyncMock(return_value=encode(SLOT0_TYPES, [sqrt_price_x96, tick, 0, 1, 1, unlocked]))
    return w3


@pytest.fixture
def account():
    return ACCOUNT
