URL_BASES: dict[str, str] = {
    "mainnet": "https://api.reservoir.tools",
    "goerli": "https://api-goerli.reservoir.tools",
    "optimism": "https://api-optimism.reservoir.tools",
    "polygon": "https://api-polygon.reservoir.tools",
}

URL_PATHS: dict[str, str] = {
    "sales": "/sales/v4",
}

PAGE_SIZE = 1_000
REQUEST_TIMEOUT_S = 100
RETRY_INTERVAL_S = 5.0
TAIL_INTERVAL_S = 30.0
