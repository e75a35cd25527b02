'''
Static enums shared by the ORM, the pydantic models and the services.
'''
import enum


class ListableEnum(str, enum.Enum):
    """A custom Enum base class that can list all member values."""
    @classmethod
    def get_all_names(cls) -> list[str]:
        return [member.value for member in cls]


class AttendanceStatusEnum(ListableEnum):
    PRESENT = 'present'
    ABSENT = 'absent'
    TA = 'ta'
    NOSHOW = 'noshow'


class CurrencyEnum(ListableEnum):
    PHP = 'PHP'
    KRW = 'KRW'


class RowSourceEnum(ListableEnum):
    SCHEDULER = 'scheduler'
    PRICING = 'pricing'


# present -> absent -> ta -> noshow -> (cleared)
ATTENDANCE_CYCLE: dict[AttendanceStatusEnum, AttendanceStatusEnum | None] = {
    AttendanceStatusEnum.PRESENT: AttendanceStatusEnum.ABSENT,
    AttendanceStatusEnum.ABSENT: AttendanceStatusEnum.TA,
    AttendanceStatusEnum.TA: AttendanceStatusEnum.NOSHOW,
    AttendanceStatusEnum.NOSHOW: None,
}

DEFAULT_CURRENCY = CurrencyEnum.PHP
