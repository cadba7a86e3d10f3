from snapguard.differ.differ import SnapshotDiffer
from snapguard.differ.json_diff import JSONMatch, compare_json
from snapguard.differ.text_diff import char_diff, unified_diff

__all__ = ["JSONMatch", "SnapshotDiffer", "char_diff", "compare_json", "unified_diff"]
