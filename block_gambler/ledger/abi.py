"""ABI subsets for the guess game, its ERC-20 stake token and the token faucet."""

GUESS_GAME_ABI = [
    {
        "type": "function",
        "name": "placeBet",
        "inputs": [
            {"name": "guess", "type": "string"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "resolveBet",
        "inputs": [{"name": "betId", "type": "uint256"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "getBet",
        "inputs": [{"name": "betId", "type": "uint256"}],
        "outputs": [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": "user", "type": "address"},
                    {"name": "guess", "type": "string"},
                    {"name": "amount", "type": "uint256"},
                    {"name": "targetByte", "type": "bytes1"},
                    {"name": "won", "type": "bool"},
                    {"name": "reward", "type": "uint256"},
                    {"name": "blockNumber", "type": "uint256"},
                    {"name": "resolved", "type": "bool"},
                ],
            }
        ],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "betCounter",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "event",
        "name": "BetPlaced",
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "betId", "type": "uint256"},
            {"indexed": True, "name": "user", "type": "address"},
            {"indexed": False, "name": "guess", "type": "string"},
            {"indexed": False, "name": "amount", "type": "uint256"},
            {"indexed": False, "name": "blockNumber", "type": "uint256"},
        ],
    },
]

ERC20_ABI = [
    {
        "type": "function",
        "name": "approve",
        "inputs": [
            {"name": "_spender", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "allowance",
        "inputs": [
            {"name": "_owner", "type": "address"},
            {"name": "_spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "_owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
]

FAUCET_ABI = [
    {
        "type": "function",
        "name": "claim",
        "inputs": [],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]

MAX_UINT256 = 2**256 - 1
