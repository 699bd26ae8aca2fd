from .errors import LoaderError
from .tree_loader import load_tree_file, load_trees, normalize_tree_record, parse_tree_record

__all__ = ["load_tree_file", "load_trees", "normalize_tree_record", "parse_tree_record", "LoaderError"]
