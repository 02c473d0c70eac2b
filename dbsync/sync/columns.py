from typing import FrozenSet, Iterable, List, Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class ColumnConfiguration:
    """
    一组包含/排除列名

    include 为空且 restricted 为 False 时表示"所有未被排除的列"。
    排除优先于包含：同时出现在两个集合中的列从 include 中移除，
    但 restricted 仍保持为 True，不会退化成"全部列"。
    实际列集合由同步引擎根据线上表结构解析。
    """
    include: FrozenSet[str] = frozenset()
    exclude: FrozenSet[str] = frozenset()
    restricted: bool = False

    def is_included(self, column: str) -> bool:
        if column in self.exclude:
            return False
        return column in self.include if self.restricted else True

    def resolve(self, columns: Iterable[str], primary_key: Iterable[str] = ()) -> List[str]:
        """
        按表结构顺序返回有效列，主键列总是保留

        Args:
            columns: 表的全部列（按表结构顺序）
            primary_key: 主键列

        Returns:
            有效列名列表
        """
        primary_key = set(primary_key)
        return [c for c in columns if c in primary_key or self.is_included(c)]

    def to_dict(self) -> dict:
        return {"include": sorted(self.include), "exclude": sorted(self.exclude)}


def _clean(names: Optional[Iterable[str]]) -> FrozenSet[str]:
    if not names:
        return frozenset()
    if isinstance(names, str):
        names = [names]
    return frozenset(n.strip() for n in names if n and n.strip())


def build_column_configuration(include: Optional[Iterable[str]] = None,
                               exclude: Optional[Iterable[str]] = None) -> ColumnConfiguration:
    """根据显式包含列表和排除列表构建列配置，不做任何 I/O"""
    included = _clean(include)
    excluded = _clean(exclude)
    return ColumnConfiguration(
        include=included - excluded,
        exclude=excluded,
        restricted=bool(included),
    )
