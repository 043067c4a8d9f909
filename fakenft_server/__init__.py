"""FakeNFT marketplace client: cart state machine, checkout and MCP/HTTP servers."""

__version__ = "0.1.0"
