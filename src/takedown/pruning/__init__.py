from takedown.pruning.pruner import Pruner, scope_table

__all__ = ["Pruner", "scope_table"]
