"""
skilltree: a progression-gating engine for upgradeable skill trees.

- models: skill, cost, effect and stat definitions
- db: progression store interfaces and implementations
- services: graph service, wallet, stat aggregator and effect bridge
"""
