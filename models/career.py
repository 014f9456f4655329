from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class Career:
    """
    One row of the career catalog.
    Read-only to the matching pipeline.
    """

    id: str
    title: str
    description: str = ""

    required_skills: Tuple[str, ...] = field(default_factory=tuple)
    education_level: Optional[str] = None
    average_salary: Optional[str] = None
    growth_outlook: Optional[str] = None
    work_environment: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Career":
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            description=row.get("description") or "",
            required_skills=tuple(row.get("required_skills") or ()),
            education_level=row.get("education_level"),
            average_salary=row.get("average_salary"),
            growth_outlook=row.get("growth_outlook"),
            work_environment=row.get("work_environment"),
        )


@dataclass(frozen=True)
class CatalogSnapshot:
    """
    The careers read once at the start of a matching run.

    Positions in this snapshot are the indices the scoring model refers
    back to, so the same snapshot must be used for prompting, parsing and
    persisting within one run. Indices are never stored.
    """

    careers: Tuple[Career, ...]

    @classmethod
    def of(cls, careers: Iterable[Career]) -> "CatalogSnapshot":
        return cls(careers=tuple(careers))

    def __len__(self) -> int:
        return len(self.careers)

    def __iter__(self) -> Iterator[Career]:
        return iter(self.careers)

    def __getitem__(self, index: int) -> Career:
        if not 0 <= index < len(self.careers):
            raise IndexError(f"career index {index} outside catalog of {len(self.careers)}")
        return self.careers[index]

    def titles(self) -> List[str]:
        return [c.title for c in self.careers]
