"""
Kernel layer.

Production Python kernels for the pool and staking math. These modules are:
- deterministic (integer-only),
- easy to audit (explicit intermediate variables),
- small surface-area (pure functions, typed results).
"""
