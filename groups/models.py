"""群状态数据结构"""

from dataclasses import dataclass, field, fields
from typing import Any

from constants import AdminRank
from utils.jid import numeric_prefix

# 线上字段名 -> GroupSettings 属性
SETTINGS_FIELDS = {
    "memberAddMode": "member_add_mode",
    "ephemeralDuration": "ephemeral_duration",
    "joinApprovalMode": "join_approval_mode",
    "announce": "announce",
    "restrict": "restrict",
}

# 线上字段名 -> GroupState 属性
STATE_FIELDS = {
    "subject": "subject",
    "owner": "owner",
    "desc": "desc",
    "creation": "creation",
    "subjectOwner": "subject_owner",
    "subjectTime": "subject_time",
}


@dataclass
class Participant:
    """群成员，id 为 lid 形式，phone_number 为手机号形式"""

    id: str | None
    phone_number: str | None = None
    admin: AdminRank = AdminRank.NONE

    @classmethod
    def from_raw(cls, raw: Any) -> "Participant":
        if isinstance(raw, Participant):
            return cls(raw.id, raw.phone_number, raw.admin)
        if isinstance(raw, str):
            return cls(id=raw)
        raw = raw or {}
        return cls(
            id=raw.get("id"),
            phone_number=raw.get("phoneNumber") or raw.get("phone_number"),
            admin=AdminRank.parse(raw.get("admin")),
        )

    @property
    def numbers(self) -> tuple[str | None, str | None]:
        return numeric_prefix(self.id), numeric_prefix(self.phone_number)

    def matches(self, other: "Participant") -> bool:
        """两种标识任一数字前缀相同即视为同一个人"""
        lid, phone = self.numbers
        other_lid, other_phone = other.numbers
        return bool(
            (lid and (lid == other_lid or lid == other_phone))
            or (phone and (phone == other_phone or phone == other_lid))
        )

    def matches_number(self, number: str | None) -> bool:
        return number is not None and number in self.numbers

    @property
    def is_admin(self) -> bool:
        return self.admin.is_admin

    def to_dict(self) -> dict:
        return {"id": self.id, "phoneNumber": self.phone_number, "admin": self.admin.value}


@dataclass
class GroupSettings:
    member_add_mode: bool | None = None
    ephemeral_duration: int | None = None
    join_approval_mode: bool | None = None
    announce: bool | None = None
    restrict: bool | None = None

    def to_dict(self) -> dict:
        return {wire: getattr(self, attr) for wire, attr in SETTINGS_FIELDS.items()}


@dataclass
class GroupState:
    """单个群的元数据快照"""

    id: str
    subject: str = ""
    owner: str | None = None
    desc: str | None = None
    creation: int | None = None
    subject_owner: str | None = None
    subject_time: int | None = None
    participants: list[Participant] = field(default_factory=list)
    settings: GroupSettings = field(default_factory=GroupSettings)
    extra: dict[str, Any] = field(default_factory=dict)
    size: int = 0

    def __post_init__(self) -> None:
        self.recount()

    @classmethod
    def from_metadata(cls, raw: dict) -> "GroupState":
        """从客户端返回的群元数据构造"""
        if isinstance(raw, GroupState):
            return raw
        state = cls(id=raw["id"])
        state.apply_patch(raw)
        state.recount()
        return state

    def recount(self) -> None:
        self.size = len(self.participants)

    def apply_patch(self, patch: dict) -> None:
        """浅合并：patch 中除 id 以外所有非 None 字段覆盖当前值，成员列表整体替换"""
        for key, value in patch.items():
            if key in ("id", "size") or value is None:
                continue
            if key == "participants":
                self.participants = dedupe([Participant.from_raw(p) for p in value])
                self.recount()
                continue
            if key in SETTINGS_FIELDS:
                setattr(self.settings, SETTINGS_FIELDS[key], value)
            elif key in STATE_FIELDS:
                setattr(self, STATE_FIELDS[key], value)
            elif key in _SNAKE_FIELDS:
                setattr(self, key, value)
            elif key in _SNAKE_SETTINGS:
                setattr(self.settings, key, value)
            else:
                self.extra[key] = value

    def find(self, jid_or_number: str | None) -> Participant | None:
        number = numeric_prefix(jid_or_number)
        if number is None:
            return None
        for participant in self.participants:
            if participant.matches_number(number):
                return participant
        return None

    def index_of(self, target: Participant) -> int:
        for index, participant in enumerate(self.participants):
            if participant.matches(target):
                return index
        return -1

    @property
    def admins(self) -> list[Participant]:
        return [p for p in self.participants if p.is_admin]

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "subject": self.subject,
            "owner": self.owner,
            "desc": self.desc,
            "size": self.size,
            "participants": [p.to_dict() for p in self.participants],
        }
        data.update(self.settings.to_dict())
        data.update(self.extra)
        return data


_SNAKE_FIELDS = set(STATE_FIELDS.values())
_SNAKE_SETTINGS = {f.name for f in fields(GroupSettings)}


def dedupe(participants: list[Participant]) -> list[Participant]:
    """同一数字前缀只保留第一次出现的成员"""
    unique: list[Participant] = []
    for participant in participants:
        if not any(existing.matches(participant) for existing in unique):
            unique.append(participant)
    return unique
