"""
Organizational role chain.

Every role reports to exactly one immediate superior role, up to the single
terminal role (Vertical). Each role also has a stable field code; a user's
superior assignment is stored remotely under ``assigned<FieldCode>`` of the
superior's role.
"""

import enum
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Union

from deptmgr.core.exceptions import ConfigurationError


class RoleDefinition(str, enum.Enum):
    """Role enumeration. The value is the display name."""
    EMPLOYEE = "Employee"
    BDE = "BDE"
    SR_BDE = "Sr. BDE"
    AS_PORTFOLIO_MANAGER = "As. Portfolio Manager"
    PORTFOLIO_MANAGER = "Portfolio Manager"
    SR_PORTFOLIO_MANAGER = "Sr. Portfolio Manager"
    TL = "TL"
    AGM = "AGM"
    GM = "GM"
    AVP = "AVP"
    VP = "VP"
    AD = "AD"
    VERTICAL = "Vertical"

    @property
    def display_name(self) -> str:
        return self.value


class RoleSpec(NamedTuple):
    """Row of the role table."""
    field_code: str
    superior: Optional[RoleDefinition]
    storage_name: Optional[str] = None  # value of the remote ``role`` field, if not the display name
    label: Optional[str] = None  # picker label, if not the display name


ROLE_TABLE: Dict[RoleDefinition, RoleSpec] = {
    RoleDefinition.EMPLOYEE: RoleSpec("EMPLOYEE", RoleDefinition.BDE),
    RoleDefinition.BDE: RoleSpec("BDE", RoleDefinition.SR_BDE),
    RoleDefinition.SR_BDE: RoleSpec("SRBDE", RoleDefinition.AS_PORTFOLIO_MANAGER),
    RoleDefinition.AS_PORTFOLIO_MANAGER: RoleSpec("ASPORTFOLIOMANAGER", RoleDefinition.PORTFOLIO_MANAGER),
    RoleDefinition.PORTFOLIO_MANAGER: RoleSpec("PORTFOLIOMANAGER", RoleDefinition.SR_PORTFOLIO_MANAGER),
    RoleDefinition.SR_PORTFOLIO_MANAGER: RoleSpec("SRPORTFOLIOMANAGER", RoleDefinition.TL),
    RoleDefinition.TL: RoleSpec("TL", RoleDefinition.AGM, storage_name="Team Leader", label="Team Leader"),
    RoleDefinition.AGM: RoleSpec("AGM", RoleDefinition.GM),
    RoleDefinition.GM: RoleSpec("GM", RoleDefinition.AVP),
    RoleDefinition.AVP: RoleSpec("AVP", RoleDefinition.VP),
    RoleDefinition.VP: RoleSpec("VP", RoleDefinition.AD),
    RoleDefinition.AD: RoleSpec("AD", RoleDefinition.VERTICAL),
    RoleDefinition.VERTICAL: RoleSpec("Vertical", None),
}

RoleRef = Union[RoleDefinition, str]


class RoleChain:
    """
    Lookup over a fixed role table.

    The table is checked on construction: its keys must be exactly the
    RoleDefinition members, there must be one terminal role, every other
    role must reach it without cycles, and names and field codes must not
    collide. Any violation raises ConfigurationError.
    """

    def __init__(
        self,
        table: Mapping[RoleDefinition, RoleSpec] = ROLE_TABLE,
        members: Iterable[RoleDefinition] = RoleDefinition,
    ):
        self._table = dict(table)
        self._validate(set(members))
        self._order = self._build_order()
        self._index = self._build_index()

    def _validate(self, members: set) -> None:
        keys = set(self._table)
        if keys != members:
            missing = sorted(m.value for m in members - keys)
            extra = sorted(k.value for k in keys - members)
            raise ConfigurationError(
                f"Role table does not match role definitions (missing={missing}, extra={extra})"
            )

        terminals = [role for role, spec in self._table.items() if spec.superior is None]
        if len(terminals) != 1:
            raise ConfigurationError(
                f"Role chain must have exactly one terminal role, found {[r.value for r in terminals]}"
            )

        for role, spec in self._table.items():
            if spec.superior is not None and spec.superior not in self._table:
                raise ConfigurationError(f"Superior of {role.value} is not a known role: {spec.superior}")

        for role, spec in self._table.items():
            seen = {role}
            current = spec.superior
            while current is not None:
                if current in seen:
                    raise ConfigurationError(f"Role chain has a cycle through {current.value}")
                seen.add(current)
                current = self._table[current].superior

    def _build_order(self) -> List[RoleDefinition]:
        """Roles bottom to top: the role nobody reports to first."""
        subordinates = {}
        for role, spec in self._table.items():
            if spec.superior is not None:
                subordinates.setdefault(spec.superior, []).append(role)
        order = []
        bottoms = [role for role in self._table if role not in subordinates]
        for bottom in bottoms:
            current: Optional[RoleDefinition] = bottom
            while current is not None and current not in order:
                order.append(current)
                current = self._table[current].superior
        return order

    def _build_index(self) -> Dict[str, RoleDefinition]:
        index: Dict[str, RoleDefinition] = {}
        for role, spec in self._table.items():
            for name in {role.value, spec.field_code, spec.storage_name or role.value}:
                owner = index.get(name)
                if owner is not None and owner is not role:
                    raise ConfigurationError(f"Role name {name!r} is used by {owner.value} and {role.value}")
                index[name] = role
        return index

    def find(self, value: Optional[RoleRef]) -> Optional[RoleDefinition]:
        """Resolve a member, display name, storage name or field code; None if unknown."""
        if value is None:
            return None
        if isinstance(value, RoleDefinition):
            return value if value in self._table else None
        return self._index.get(str(value).strip())

    def get(self, value: RoleRef) -> RoleDefinition:
        role = self.find(value)
        if role is None:
            raise ConfigurationError(f"Unknown role: {value!r}")
        return role

    def roles(self) -> List[RoleDefinition]:
        return list(self._order)

    def superior_of(self, role: RoleRef) -> Optional[RoleDefinition]:
        return self._table[self.get(role)].superior

    def field_code_of(self, role: RoleRef) -> str:
        return self._table[self.get(role)].field_code

    def is_terminal(self, role: RoleRef) -> bool:
        return self.superior_of(role) is None

    def superior_field_of(self, role: RoleRef) -> Optional[str]:
        """Remote attribute holding the superior's id, e.g. ``assignedSRBDE`` for BDE."""
        superior = self.superior_of(role)
        if superior is None:
            return None
        return f"assigned{self.field_code_of(superior)}"

    def storage_name_of(self, role: RoleRef) -> str:
        """Value written to the remote ``role`` field."""
        resolved = self.get(role)
        return self._table[resolved].storage_name or resolved.value

    def label_of(self, role: RoleRef) -> str:
        resolved = self.get(role)
        return self._table[resolved].label or resolved.value

    def assign_label(self, role: RoleRef) -> str:
        superior = self.superior_of(role)
        return f"Assign {superior.display_name}" if superior else ""


role_chain = RoleChain()
