from takedown.extraction.extractor import Extractor, iter_log_files, volume_token_regex

__all__ = ["Extractor", "iter_log_files", "volume_token_regex"]
