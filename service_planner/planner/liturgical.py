"""Liturgical season lookup for service dates.

Seasons follow the Western church year: Advent begins on the fourth Sunday
before Christmas, Christmas runs Dec 24 - Jan 5, Epiphany runs until Ash
Wednesday, and the Lent/Holy Week/Easter cycle hangs off the date of Easter.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Optional


class LiturgicalSeason(Enum):
    ADVENT = "ADVENT"
    CHRISTMAS = "CHRISTMAS"
    EPIPHANY = "EPIPHANY"
    LENT = "LENT"
    HOLY_WEEK = "HOLY_WEEK"
    EASTER = "EASTER"
    PENTECOST_DAY = "PENTECOST_DAY"
    TRINITY = "TRINITY"
    ORDINARY_TIME = "ORDINARY_TIME"
    REFORMATION = "REFORMATION"
    ALL_SAINTS = "ALL_SAINTS"
    CHRIST_KING = "CHRIST_KING"

    @property
    def label(self) -> str:
        return _SEASON_DISPLAY[self][0]

    @property
    def color(self) -> str:
        return _SEASON_DISPLAY[self][1]


_SEASON_DISPLAY: dict[LiturgicalSeason, tuple[str, str]] = {
    LiturgicalSeason.ADVENT: ("Advent", "#5D3FD3"),
    LiturgicalSeason.CHRISTMAS: ("Christmas", "#D4AF37"),
    LiturgicalSeason.EPIPHANY: ("Epiphany", "#008080"),
    LiturgicalSeason.LENT: ("Lent", "#800020"),
    LiturgicalSeason.HOLY_WEEK: ("Holy Week", "#8B0000"),
    LiturgicalSeason.EASTER: ("Easter", "#FFF0AA"),
    LiturgicalSeason.PENTECOST_DAY: ("Day of Pentecost", "#FF3131"),
    LiturgicalSeason.TRINITY: ("Holy Trinity", "#FFFFFF"),
    LiturgicalSeason.ORDINARY_TIME: ("Ordinary Time", "#556B2F"),
    LiturgicalSeason.REFORMATION: ("Reformation", "#FF0000"),
    LiturgicalSeason.ALL_SAINTS: ("All Saints", "#FFFFFF"),
    LiturgicalSeason.CHRIST_KING: ("Christ the King", "#FFFFFF"),
}

# Special day id -> (name, season it belongs to, color or None for the season's)
_SPECIAL_DAYS: dict[str, tuple[str, LiturgicalSeason, Optional[str]]] = {
    "ADVENT_1": ("First Sunday of Advent", LiturgicalSeason.ADVENT, None),
    "CHRISTMAS_EVE": ("Christmas Eve", LiturgicalSeason.CHRISTMAS, "#D4AF37"),
    "CHRISTMAS_DAY": ("Christmas Day", LiturgicalSeason.CHRISTMAS, "#D4AF37"),
    "EPIPHANY_DAY": ("Feast of the Epiphany", LiturgicalSeason.EPIPHANY, "#008080"),
    "TRANSFIGURATION": ("Transfiguration of Our Lord", LiturgicalSeason.EPIPHANY, "#FFFFFF"),
    "ASH_WEDNESDAY": ("Ash Wednesday", LiturgicalSeason.LENT, "#800020"),
    "PALM_SUNDAY": ("Palm Sunday", LiturgicalSeason.HOLY_WEEK, "#8B0000"),
    "MAUNDY_THURSDAY": ("Maundy Thursday", LiturgicalSeason.HOLY_WEEK, "#8B0000"),
    "GOOD_FRIDAY": ("Good Friday", LiturgicalSeason.HOLY_WEEK, "#000000"),
    "EASTER_SUNDAY": ("Easter Sunday", LiturgicalSeason.EASTER, "#FFF0AA"),
    "ASCENSION": ("Ascension of Our Lord", LiturgicalSeason.EASTER, "#FFFFFF"),
    "PENTECOST_SUNDAY": ("Day of Pentecost", LiturgicalSeason.PENTECOST_DAY, "#FF3131"),
    "TRINITY_SUNDAY": ("Holy Trinity", LiturgicalSeason.TRINITY, "#FFFFFF"),
    "REFORMATION_SUNDAY": ("Reformation Sunday", LiturgicalSeason.REFORMATION, "#FF0000"),
    "ALL_SAINTS_DAY": ("All Saints Day", LiturgicalSeason.ALL_SAINTS, "#FFFFFF"),
    "CHRIST_THE_KING": ("Christ the King", LiturgicalSeason.CHRIST_KING, "#FFFFFF"),
    "THANKSGIVING": ("Thanksgiving", LiturgicalSeason.ORDINARY_TIME, "#556B2F"),
}


@dataclass(frozen=True)
class LiturgicalInfo:
    season: LiturgicalSeason
    special_day_id: Optional[str] = None

    @property
    def special_day_name(self) -> Optional[str]:
        if self.special_day_id is None:
            return None
        return _SPECIAL_DAYS[self.special_day_id][0]

    @property
    def color(self) -> str:
        """The special day's own color when it has one, else the season's."""
        if self.special_day_id is not None:
            day_color = _SPECIAL_DAYS[self.special_day_id][2]
            if day_color:
                return day_color
        return self.season.color

    def to_context(self) -> Dict[str, Any]:
        """Return the denormalized ``liturgicalContext`` stored on a service."""
        return {
            "seasonId": self.season.value,
            "seasonName": self.season.label,
            "color": self.color,
            "specialDayId": self.special_day_id,
            "specialDayName": self.special_day_name,
        }


@lru_cache(maxsize=256)
def calculate_easter(year: int) -> date:
    """Return Easter Sunday (Meeus/Jones/Butcher Gregorian computus)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


def calculate_advent_start(year: int) -> date:
    """Return the fourth Sunday before Christmas."""
    christmas = date(year, 12, 25)
    # date.weekday(): Monday=0 .. Sunday=6
    days_since_sunday = (christmas.weekday() + 1) % 7
    return christmas - timedelta(days=days_since_sunday + 21)


def calculate_ash_wednesday(year: int) -> date:
    return calculate_easter(year) - timedelta(days=46)


SUNDAY = 6


def _is_reformation_sunday(value: date) -> bool:
    """Last Sunday in October."""
    return value.month == 10 and value.weekday() == SUNDAY and value.day > 24


def _is_all_saints_sunday(value: date) -> bool:
    """First Sunday in November, which covers Nov 1 when it is a Sunday."""
    return value.month == 11 and value.weekday() == SUNDAY and value.day <= 7


def _thanksgiving(year: int) -> date:
    """Fourth Thursday in November."""
    first = date(year, 11, 1)
    first_thursday = first + timedelta(days=(3 - first.weekday()) % 7)
    return first_thursday + timedelta(days=21)


def get_special_day(value: date) -> Optional[str]:
    """Return the special day id for ``value``, if it is one."""
    year = value.year
    easter = calculate_easter(year)
    advent = calculate_advent_start(year)
    fixed = {
        date(year, 12, 24): "CHRISTMAS_EVE",
        date(year, 12, 25): "CHRISTMAS_DAY",
        date(year, 1, 6): "EPIPHANY_DAY",
        advent: "ADVENT_1",
        advent - timedelta(days=7): "CHRIST_THE_KING",
        calculate_ash_wednesday(year) - timedelta(days=3): "TRANSFIGURATION",
        calculate_ash_wednesday(year): "ASH_WEDNESDAY",
        easter - timedelta(days=7): "PALM_SUNDAY",
        easter - timedelta(days=3): "MAUNDY_THURSDAY",
        easter - timedelta(days=2): "GOOD_FRIDAY",
        easter: "EASTER_SUNDAY",
        easter + timedelta(days=39): "ASCENSION",
        easter + timedelta(days=49): "PENTECOST_SUNDAY",
        easter + timedelta(days=56): "TRINITY_SUNDAY",
        _thanksgiving(year): "THANKSGIVING",
    }
    if value in fixed:
        return fixed[value]
    if _is_reformation_sunday(value):
        return "REFORMATION_SUNDAY"
    if _is_all_saints_sunday(value):
        return "ALL_SAINTS_DAY"
    return None


def get_season(value: date) -> LiturgicalSeason:
    special = get_special_day(value)
    if special is not None:
        return _SPECIAL_DAYS[special][1]
    year = value.year
    easter = calculate_easter(year)
    ash_wednesday = calculate_ash_wednesday(year)
    palm_sunday = easter - timedelta(days=7)
    pentecost = easter + timedelta(days=49)
    if (value.month == 12 and value.day >= 24) or (value.month == 1 and value.day <= 5):
        return LiturgicalSeason.CHRISTMAS
    if date(year, 1, 6) <= value < ash_wednesday:
        return LiturgicalSeason.EPIPHANY
    if ash_wednesday <= value < palm_sunday:
        return LiturgicalSeason.LENT
    if palm_sunday <= value < easter:
        return LiturgicalSeason.HOLY_WEEK
    if easter <= value < pentecost:
        return LiturgicalSeason.EASTER
    if calculate_advent_start(year) <= value <= date(year, 12, 23):
        return LiturgicalSeason.ADVENT
    return LiturgicalSeason.ORDINARY_TIME


def get_liturgical_info(value: date) -> LiturgicalInfo:
    """Return the season and special day for a service date."""
    return LiturgicalInfo(season=get_season(value), special_day_id=get_special_day(value))
