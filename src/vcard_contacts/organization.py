from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .models import OrganizationEntry

DEFAULT_ORGANIZATION_CATEGORY = "work"


class OrganizationMerger:
    """Pairs ORG and TITLE properties that can arrive in either order.

    The card format has no key linking a TITLE to its ORG, so each value fills
    the first entry still missing that part, and only otherwise starts a new one.
    """

    def __init__(self, organizations: List[OrganizationEntry]):
        self.organizations = organizations

    @staticmethod
    def split_name_parts(name_parts: Optional[Sequence[str]]) -> Tuple[str, Optional[str]]:
        parts = list(name_parts or [])
        company = parts[0] if parts else ""
        department = " ".join(parts[1:]) if len(parts) > 1 else None
        return company, department

    def apply_organization(
        self, category: str, name_parts: Optional[Sequence[str]], is_primary: bool
    ) -> OrganizationEntry:
        company, department = self.split_name_parts(name_parts)
        for entry in self.organizations:
            if entry.is_open():
                entry.company = company
                entry.department = department
                entry.is_primary = is_primary
                return entry
        entry = OrganizationEntry(
            category=category,
            company=company,
            department=department,
            title=None,
            is_primary=is_primary,
        )
        self.organizations.append(entry)
        return entry

    def apply_title(self, title: str) -> OrganizationEntry:
        for entry in self.organizations:
            if entry.title is None:
                entry.title = title
                return entry
        entry = OrganizationEntry(category=DEFAULT_ORGANIZATION_CATEGORY, title=title)
        self.organizations.append(entry)
        return entry
