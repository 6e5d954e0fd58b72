"""
Venue Adapters Package

Each venue has its own subfolder:
- okx/, bitoasis/: REST polling (api_client.py) behind an ExchangeInterface
- rain/, multibank/: WebSocket streaming (ws_client.py) behind a StreamingExchange

Adding a venue means adding a subfolder and a fee schedule in core.fees; the
aggregator picks it up through the ExchangeManager.
"""
