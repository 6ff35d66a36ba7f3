"""
modelprobe - Channel Model Prober

Keeps an LLM-proxy routing table current by probing every configured
channel for the models it actually serves.

Architecture:
- Each module is self-contained with clear interfaces
- Modules receive their collaborators explicitly (config, engine, HTTP client)
- All communication through defined interfaces

Modules:
- storage: SQL engine construction and table definitions
- capability: Channel and ability persistence gateway
- selector: Eligible channel selection
- prober: Model discovery and health checks
- reconciler: Writing verified models back to the store
- scheduler: Pass orchestration and the interval loop
- api: Wire models for the OpenAI-compatible endpoints
"""

__version__ = "1.0.0"
