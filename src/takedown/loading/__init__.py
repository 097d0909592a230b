from takedown.loading.loader import Loader
from takedown.loading.parsing import parse_access_line, parse_clf_timestamp

__all__ = ["Loader", "parse_access_line", "parse_clf_timestamp"]
