"""Contract ABIs consumed by the on-chain client.

Only the functions the client calls are listed.
"""


def _view_address(name: str) -> dict:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    }


def _mutator(name: str, *arguments: str) -> dict:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "nonpayable",
        "inputs": [{"name": argument, "type": "address"} for argument in arguments],
        "outputs": [],
    }


DISTRIBUTOR_ABI = [
    _view_address("owner"),
    _view_address("recipient1"),
    _view_address("recipient2"),
    _view_address("tokenAddress"),
    _view_address("uniswapRouter"),
    _view_address("lpTokenHolder"),
    _mutator("transferOwnership", "newOwner"),
    _mutator("updateRecipients", "_recipient1", "_recipient2"),
    _mutator("updateTokenAddress", "_tokenAddress"),
    _mutator("updateUniswapRouter", "_uniswapRouter"),
    _mutator("updateLpTokenHolder", "_lpTokenHolder"),
    _mutator("distributeETH"),
    _mutator("rescueETH"),
]

ERC20_BALANCE_ABI = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]
