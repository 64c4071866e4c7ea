"""
Person Directory
Merges staff and freelancers into one lookup of tagged Person records, built
once per form/session. Downstream code matches on Person.kind instead of
probing which fields a record happens to have.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from studiocrew.models import (
    Freelancer, Person, Staff,
    PERSON_FREELANCER, PERSON_STAFF, ROLE_SAME_DAY_EDITOR, ROLE_OTHER, ROLES,
)

logger = logging.getLogger(__name__)

# Who may be offered for a slot role besides people holding that role
_EXTRA_PICKER_ROLES = {
    ROLE_SAME_DAY_EDITOR: ('Editor',),
}


class PersonDirectory:
    """id -> Person across staff and freelancers."""

    def __init__(self, people: Iterable[Person] = ()):
        self._people: Dict[str, Person] = {}
        for person in people:
            self.add(person)

    def add(self, person: Person) -> None:
        if person.id in self._people:
            existing = self._people[person.id]
            raise ValueError(
                f"Person id {person.id!r} is both {existing.kind} ({existing.full_name}) "
                f"and {person.kind} ({person.full_name})"
            )
        self._people[person.id] = person

    def get(self, person_id: str) -> Optional[Person]:
        return self._people.get(person_id)

    def kind_of(self, person_id: str) -> Optional[str]:
        person = self._people.get(person_id)
        return person.kind if person else None

    def name_of(self, person_id: str, default: str = '') -> str:
        person = self._people.get(person_id)
        return person.full_name if person else (default or person_id)

    def for_role(self, role: str) -> List[Person]:
        """
        Candidates for a slot role, sorted by name. 'Other' slots accept
        anyone whose role is not one of the named crew roles.
        """
        if role == ROLE_OTHER:
            named = set(ROLES) - {ROLE_OTHER}
            matches = [p for p in self._people.values() if p.role not in named]
        else:
            accepted = (role,) + _EXTRA_PICKER_ROLES.get(role, ())
            matches = [p for p in self._people.values() if p.role in accepted]
        return sorted(matches, key=lambda p: p.full_name.lower())

    def __contains__(self, person_id) -> bool:
        return person_id in self._people

    def __iter__(self) -> Iterator[Person]:
        return iter(self._people.values())

    def __len__(self) -> int:
        return len(self._people)


def person_from_staff(staff: Staff) -> Person:
    return Person(kind=PERSON_STAFF, id=staff.id, full_name=staff.full_name,
                  role=staff.role, phone=staff.mobile_number)


def person_from_freelancer(freelancer: Freelancer) -> Person:
    return Person(kind=PERSON_FREELANCER, id=freelancer.id, full_name=freelancer.full_name,
                  role=freelancer.role, phone=freelancer.phone)


def build_person_directory(staff: Iterable[Staff], freelancers: Iterable[Freelancer]) -> PersonDirectory:
    """
    Merge both lists. Raises ValueError when an id appears in both, since
    the kind would then be ambiguous when persisting.
    """
    directory = PersonDirectory()
    for member in staff:
        directory.add(person_from_staff(member))
    for freelancer in freelancers:
        directory.add(person_from_freelancer(freelancer))
    logger.debug(f"build_person_directory: {len(directory)} people")
    return directory


def load_person_directory(store, firm_id: str) -> PersonDirectory:
    """Directory for a firm, read through the store."""
    return build_person_directory(store.list_staff(firm_id), store.list_freelancers(firm_id))
