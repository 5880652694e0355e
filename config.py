# config.py
import os
from dotenv import load_dotenv
from pathlib import Path

load_dotenv()

BASE_PATH = Path(__file__).resolve().parent / "resources"
MODULE_PATH = Path(__file__).resolve().parent / "modules"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Signing key and token come from .env
PRIVATE_KEY = os.getenv('PRIVATE_KEY')
MAIN_TOKEN_ADDRESS = os.getenv('MAIN_TOKEN_ADDRESS')
DEBUG = _env_flag('DEBUG', False)

# "batched" (one Multicall3 tx) or "sequential" (one tx per recipient per asset)
AIRDROP_MODE = os.getenv('AIRDROP_MODE', 'batched').strip().lower()
RECEIPT_TIMEOUT = int(os.getenv('RECEIPT_TIMEOUT', '300'))  # seconds
SIMULATE_BATCH = _env_flag('SIMULATE_BATCH', True)
STRICT_AMOUNTS = _env_flag('STRICT_AMOUNTS', False)

MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

MULTICALL3_ABI = """
[
  {
    "inputs": [
      {
        "components": [
          {"internalType": "address", "name": "target", "type": "address"},
          {"internalType": "bool", "name": "allowFailure", "type": "bool"},
          {"internalType": "uint256", "name": "value", "type": "uint256"},
          {"internalType": "bytes", "name": "callData", "type": "bytes"}
        ],
        "internalType": "struct Multicall3.Call3Value[]",
        "name": "calls",
        "type": "tuple[]"
      }
    ],
    "name": "aggregate3Value",
    "outputs": [
      {
        "components": [
          {"internalType": "bool", "name": "success", "type": "bool"},
          {"internalType": "bytes", "name": "returnData", "type": "bytes"}
        ],
        "internalType": "struct Multicall3.Result[]",
        "name": "returnData",
        "type": "tuple[]"
      }
    ],
    "stateMutability": "payable",
    "type": "function"
  }
]
"""

TOKEN_ABI = '''[
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "symbol",
        "outputs": [{"internalType": "string", "name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [{"internalType": "address", "name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "address", "name": "owner", "type": "address"},
            {"internalType": "address", "name": "spender", "type": "address"}
        ],
        "name": "allowance",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "address", "name": "spender", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"}
        ],
        "name": "approve",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"}
        ],
        "name": "transfer",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]'''


class FRAXTAL :
    # RPC URL for connecting to Fraxtal mainnet
    RPC_URL = os.getenv('RPC_URL', 'https://rpc.frax.com')

    CHAIN_ID = 252
    CHAIN_NAME = "fraxtal"
    NATIVE_SYMBOL = "FRAX"

    # Paths to your wallet and recipient files
    WALLET_FILE = os.path.join(BASE_PATH, "wallet.txt") #private keys
    RECIPIENTS_FILE = os.path.join(BASE_PATH, "recipients.csv")

    TOKEN_ABI = TOKEN_ABI
    MULTICALL3_ADDRESS = MULTICALL3_ADDRESS     # or override with chain-specific address
    MULTICALL3_ABI = MULTICALL3_ABI

    RECEIPT_TIMEOUT = RECEIPT_TIMEOUT
    SIMULATE_BATCH = SIMULATE_BATCH
    STRICT_AMOUNTS = STRICT_AMOUNTS

class ETHER :
    # RPC URL for connecting to Ethereum mainnet
    RPC_URL = os.getenv('ETH_RPC_URL', 'https://eth.llamarpc.com')

    CHAIN_ID = 1
    CHAIN_NAME = "ethereum"
    NATIVE_SYMBOL = "ETH"

    WALLET_FILE = os.path.join(BASE_PATH, "wallet.txt")
    RECIPIENTS_FILE = os.path.join(BASE_PATH, "recipients.csv")

    TOKEN_ABI = TOKEN_ABI
    MULTICALL3_ADDRESS = MULTICALL3_ADDRESS
    MULTICALL3_ABI = MULTICALL3_ABI

    RECEIPT_TIMEOUT = RECEIPT_TIMEOUT
    SIMULATE_BATCH = SIMULATE_BATCH
    STRICT_AMOUNTS = STRICT_AMOUNTS

class Base :
    # RPC URL for connecting to Base mainnet
    RPC_URL = os.getenv('BASE_RPC_URL', 'https://mainnet.base.org')

    CHAIN_ID = 8453
    CHAIN_NAME = "base"
    NATIVE_SYMBOL = "ETH"

    WALLET_FILE = os.path.join(BASE_PATH, "wallet.txt")
    RECIPIENTS_FILE = os.path.join(BASE_PATH, "recipients.csv")

    TOKEN_ABI = TOKEN_ABI
    MULTICALL3_ADDRESS = MULTICALL3_ADDRESS
    MULTICALL3_ABI = MULTICALL3_ABI

    RECEIPT_TIMEOUT = RECEIPT_TIMEOUT
    SIMULATE_BATCH = SIMULATE_BATCH
    STRICT_AMOUNTS = STRICT_AMOUNTS

class OP :
    # RPC URL for connecting to Optimism mainnet
    RPC_URL = os.getenv('OP_RPC_URL', 'https://mainnet.optimism.io')

    CHAIN_ID = 10
    CHAIN_NAME = "optimism"
    NATIVE_SYMBOL = "ETH"

    WALLET_FILE = os.path.join(BASE_PATH, "wallet.txt")
    RECIPIENTS_FILE = os.path.join(BASE_PATH, "recipients.csv")

    TOKEN_ABI = TOKEN_ABI
    MULTICALL3_ADDRESS = MULTICALL3_ADDRESS
    MULTICALL3_ABI = MULTICALL3_ABI

    RECEIPT_TIMEOUT = RECEIPT_TIMEOUT
    SIMULATE_BATCH = SIMULATE_BATCH
    STRICT_AMOUNTS = STRICT_AMOUNTS


CHAINS = {
    "FRAXTAL": FRAXTAL,
    "ETHER": ETHER,
    "Base": Base,
    "OP": OP,
}
