"""Read-only access to the Slipstream position manager, CL gauge and pool on Base."""

import asyncio
import sys
from dataclasses import dataclass
from enum import Enum

from eth_abi import decode
from web3 import AsyncWeb3, Web3
from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    InvalidAddress,
    Web3ValidationError,
)

BASE_RPC_URL = "https://mainnet.base.org"

# EVM EOA TO TRACK
WALLET_ADDRESS = Web3.to_checksum_address("0x8A9bBEbA43E3cEc41E7922E13644cE37abE63D2f")

# Slipstream NonfungiblePositionManager
POSITION_MANAGER_CA = Web3.to_checksum_address("0x827922686190790b37229fd06084350E74485b72")

# Slipstream CL gauge
GAUGE_CA = Web3.to_checksum_address("0x6399ed6725cC163D019aA64FF55b22149D7179A8")

# Slipstream WETH/USDC CL pool
POOL_CA = Web3.to_checksum_address("0xb2cc224c1c9feE385f8ad6a55b4d94E92359DC59")

TOKEN0 = Web3.to_checksum_address("0x4200000000000000000000000000000000000006")
TOKEN0_SYMBOL = "WETH"
TOKEN0_DECIMALS = 18

TOKEN1 = Web3.to_checksum_address("0x833589fcd6edb6e08f4c7c32d4f71b54bda02913")
TOKEN1_SYMBOL = "USDC"
TOKEN1_DECIMALS = 6

REWARD_SYMBOL = "AERO"
REWARD_DECIMALS = 18

RETRY_ATTEMPTS = 3
RETRY_DELAY = 1.0  # seconds

SLOT0_SELECTOR = "0x3850c7bd"   # slot0()
SLOT0_TYPES = ["uint160", "int24", "uint16", "uint16", "uint16", "bool"]

POSITION_MANAGER_ABI = [
    {
        "name": "positions",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [
            {"name": "nonce", "type": "uint96"},
            {"name": "operator", "type": "address"},
            {"name": "token0", "type": "address"},
            {"name": "token1", "type": "address"},
            {"name": "tickSpacing", "type": "int24"},
            {"name": "tickLower", "type": "int24"},
            {"name": "tickUpper", "type": "int24"},
            {"name": "liquidity", "type": "uint128"},
            {"name": "feeGrowthInside0LastX128", "type": "uint256"},
            {"name": "feeGrowthInside1LastX128", "type": "uint256"},
            {"name": "tokensOwed0", "type": "uint128"},
            {"name": "tokensOwed1", "type": "uint128"},
        ],
    },
]

GAUGE_ABI = [
    {
        "name": "stakedLength",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "depositor", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "stakedByIndex",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "depositor", "type": "address"},
            {"name": "index", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "earned",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "account", "type": "address"},
            {"name": "tokenId", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "pool",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]


@dataclass(frozen=True)
class Position:
    token_id: int
    token0: str
    token1: str
    tick_spacing: int
    tick_lower: int
    tick_upper: int
    liquidity: int
    tokens_owed0: int
    tokens_owed1: int

    @classmethod
    def from_call(cls, token_id: int, position) -> "Position":
        return cls(
            token_id=token_id,
            token0=position[2],
            token1=position[3],
            tick_spacing=position[4],
            tick_lower=position[5],
            tick_upper=position[6],
            liquidity=position[7],
            tokens_owed0=position[10],
            tokens_owed1=position[11],
        )

    def matches_pair(self, token0: str, token1: str) -> bool:
        return self.token0.lower() == token0.lower() and self.token1.lower() == token1.lower()


@dataclass(frozen=True)
class StakedPosition:
    index: int
    position: Position
    earned: int


@dataclass(frozen=True)
class PoolState:
    sqrt_price_x96: int
    tick: int
    unlocked: bool


class FailureKind(Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"


# Reverts, undecodable output and bad arguments won't change on a second try
PERMANENT_ERRORS = (
    ContractLogicError,
    BadFunctionCallOutput,
    InvalidAddress,
    Web3ValidationError,
    TypeError,
)


def classify_failure(error: Exception) -> FailureKind:
    if isinstance(error, PERMANENT_ERRORS):
        return FailureKind.PERMANENT
    return FailureKind.TRANSIENT


async def call_with_retry(operation, attempts: int = RETRY_ATTEMPTS, delay: float = RETRY_DELAY):
    """Await ``operation()`` until it succeeds or ``attempts`` calls have failed.

    Transient failures wait ``delay`` seconds and try again. Permanent
    failures, and the failure of the last attempt, are raised unchanged.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if classify_failure(e) is FailureKind.PERMANENT or attempt == attempts:
                raise
            print(f"⚠️  Attempt {attempt}/{attempts} failed: {e} (retrying in {delay}s)", file=sys.stderr)
            await asyncio.sleep(delay)


async def connect(rpc_url: str = BASE_RPC_URL, attempts: int = RETRY_ATTEMPTS, delay: float = RETRY_DELAY) -> AsyncWeb3:
    w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
    # show_traceback makes a failed check raise instead of returning False
    if not await call_with_retry(lambda: w3.is_connected(show_traceback=True), attempts, delay):
        raise ConnectionError(f"❌ Unable to connect to the node at {rpc_url}")
    return w3


def get_contracts(w3: AsyncWeb3):
    gauge = w3.eth.contract(address=GAUGE_CA, abi=GAUGE_ABI)
    position_manager = w3.eth.contract(address=POSITION_MANAGER_CA, abi=POSITION_MANAGER_ABI)
    return gauge, position_manager


async def get_staked_count(gauge, account: str, attempts: int = RETRY_ATTEMPTS, delay: float = RETRY_DELAY) -> int:
    return await call_with_retry(lambda: gauge.functions.stakedLength(account).call(), attempts, delay)


async def get_staked_position(gauge, position_manager, account: str, index: int,
                              attempts: int = RETRY_ATTEMPTS, delay: float = RETRY_DELAY) -> StakedPosition:
    token_id = await call_with_retry(
        lambda: gauge.functions.stakedByIndex(account, index).call(), attempts, delay
    )
    position = await call_with_retry(
        lambda: position_manager.functions.positions(token_id).call(), attempts, delay
    )
    earned = await call_with_retry(
        lambda: gauge.functions.earned(account, token_id).call(), attempts, delay
    )
    return StakedPosition(index=index, position=Position.from_call(token_id, position), earned=earned)


async def iter_staked_positions(gauge, position_manager, account: str, count: int,
                                attempts: int = RETRY_ATTEMPTS, delay: float = RETRY_DELAY):
    for index in range(count):
        yield await get_staked_position(gauge, position_manager, account, index, attempts, delay)


async def get_pool_state(w3: AsyncWeb3, pool_address: str = POOL_CA,
                         attempts: int = RETRY_ATTEMPTS, delay: float = RETRY_DELAY) -> PoolState:
    slot0_result = await call_with_retry(
        lambda: w3.eth.call({"to": pool_address, "data": SLOT0_SELECTOR}), attempts, delay
    )
    slot0_decoded = decode(SLOT0_TYPES, bytes(slot0_result))

    return PoolState(
        sqrt_price_x96=slot0_decoded[0],
        tick=slot0_decoded[1],
        unlocked=slot0_decoded[5],
    )
