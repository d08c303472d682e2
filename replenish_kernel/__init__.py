"""
Replenish Kernel

Shared foundations for the replenishment planning engines:
- Structured JSON logging with context propagation
- Typed exception hierarchy with machine-readable codes
- Decimal-only money and exchange-rate value objects
"""

__version__ = "0.1.0"
