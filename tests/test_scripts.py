"""Console output of staked_positions.py and position_tracker.py. No network."""

import asyncio
from unittest.mock import AsyncMock, patch

from web3.exceptions import ContractLogicError

from conftest import OTHER_TOKEN, make_gauge, make_position_manager, make_w3, position_tuple
import position_tracker
import staked_positions
from position_tracker import compute_position_values, track_positions
from reader_for_liquidity_positions import Position, PoolState, TOKEN0, TOKEN1
from staked_positions import list_staked_positions
from tick_amm_model import Q96, get_sqrt_ratio_at_tick


class TestStakedPositions:

    def test_no_positions(self, account, capsys):
        gauge = make_gauge([])
        count = asyncio.run(list_staked_positions(gauge, make_position_manager([]), account))

        out = capsys.readouterr().out
        assert count == 0
        assert "User has 0 staked CL positions in the gauge." in out
        assert "Staked Position Token ID" not in out
        assert gauge.functions.stakedByIndex.call_count == 0

    def test_prints_details_and_rewards(self, account, capsys):
        gauge = make_gauge([777], earned=[1_500_000_000_000_000_000])
        position_manager = make_position_manager([position_tuple(liquidity=123456789, owed0=5, owed1=6)])

        asyncio.run(list_staked_positions(gauge, position_manager, account))

        out = capsys.readouterr().out
        assert "User has 1 staked CL positions in the gauge." in out
        assert "Staked Position Token ID: 777" in out
        assert "'liquidity': '123456789'" in out
        assert "'tokensOwed0': '5'" in out
        assert "Claimable AERO Emissions (raw): 1500000000000000000" in out
        assert "Claimable AERO Emissions (human-readable): 1.5" in out

    def test_main_reports_errors_and_returns(self, capsys):
        with patch("staked_positions.connect", AsyncMock(side_effect=ConnectionError("node down"))):
            assert asyncio.run(staked_positions.main()) is None

        assert "Error fetching staked positions: node down" in capsys.readouterr().err


class TestComputePositionValues:

    def test_example_range_around_tick_zero(self):
        position = Position.from_call(1, position_tuple(tick_lower=-100, tick_upper=100, liquidity=1_000_000))
        values = compute_position_values(position, PoolState(sqrt_price_x96=Q96, tick=0, unlocked=True))

        assert float(values["min_price"]) < float(values["max_price"])
        assert float(values["amount0"]) > 0
        assert float(values["amount1"]) > 0
        assert values["in_range"] is True

    def test_out_of_range_above(self):
        position = Position.from_call(1, position_tuple(tick_lower=-100, tick_upper=100, liquidity=10 ** 18))
        pool_state = PoolState(sqrt_price_x96=get_sqrt_ratio_at_tick(500), tick=500, unlocked=True)
        values = compute_position_values(position, pool_state)

        assert values["in_range"] is False
        assert values["amount0"] == "0"
        assert float(values["amount1"]) > 0


class TestTrackPositions:

    def test_matching_pair_prints_range_and_holdings(self, account, capsys):
        gauge = make_gauge([901], earned=[2 * 10 ** 18])
        position_manager = make_position_manager([position_tuple(token0=TOKEN0.lower(), token1=TOKEN1.lower())])

        count = asyncio.run(track_positions(make_w3(), gauge, position_manager, account))

        out = capsys.readouterr().out
        assert count == 1
        assert "Token ID 901" in out
        assert "Price range:" in out
        assert "🟢 In range" in out
        assert "Claimable AERO : 2.0 (raw 2000000000000000000)" in out

    def test_mismatched_pair_skips_conversion(self, account, capsys):
        gauge = make_gauge([901, 902])
        position_manager = make_position_manager([
            position_tuple(token0=OTHER_TOKEN),
            position_tuple(),
        ])

        asyncio.run(track_positions(make_w3(), gauge, position_manager, account))

        out = capsys.readouterr().out
        first, second = out.split("Token ID 901")[1].split("Token ID 902")
        assert "Unexpected pair" in first
        assert "Ticks: [-100, 100]" in first
        assert "Price range" not in first
        assert "Price range" in second

    def test_pool_read_once(self, account):
        w3 = make_w3()
        gauge = make_gauge([1, 2, 3])
        position_manager = make_position_manager([position_tuple()] * 3)

        asyncio.run(track_positions(w3, gauge, position_manager, account))

        assert w3.eth.call.await_count == 1

    def test_gauge_pool_mismatch_warns(self, account, capsys):
        gauge = make_gauge([], pool=OTHER_TOKEN)
        asyncio.run(track_positions(make_w3(), gauge, make_position_manager([]), account))

        assert "differs from tracked pool" in capsys.readouterr().err

    def test_unreadable_gauge_pool_warns_and_continues(self, account, capsys):
        gauge = make_gauge([901])
        gauge.functions.pool.return_value.call = AsyncMock(side_effect=ContractLogicError("execution reverted"))
        position_manager = make_position_manager([position_tuple()])

        count = asyncio.run(track_positions(make_w3(), gauge, position_manager, account))

        captured = capsys.readouterr()
        assert count == 1
        assert "Could not read the gauge pool (execution reverted)" in captured.err
        assert "Token ID 901" in captured.out

    def test_locked_pool_is_reported(self, account, capsys):
        asyncio.run(track_positions(make_w3(unlocked=False), make_gauge([]), make_position_manager([]), account))
        assert "Pool is locked" in capsys.readouterr().out

    def test_main_reports_errors_and_returns(self, capsys):
        with patch("position_tracker.connect", AsyncMock(side_effect=ConnectionError("node down"))):
            assert asyncio.run(position_tracker.main()) is None

        assert "Error fetching staked positions: node down" in capsys.readouterr().err
