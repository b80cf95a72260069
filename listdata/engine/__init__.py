"""
List-query engine.

Key Components:
- accessor: resolves named fields on records to tagged values
- validator: rejects malformed requests before any stage runs
- filters / search / sorting / pagination: the pipeline stages
- processor: the orchestrator and only public entry point

Design Principles:
- Purity: every stage is a function of its inputs, nothing is cached
- Determinism: identical requests over identical input give identical
  pages and cursor tokens
"""

from listdata.engine.processor import ListDataProcessor

__all__ = ["ListDataProcessor"]
