from takedown.query.queryer import QueryEngine

__all__ = ["QueryEngine"]
