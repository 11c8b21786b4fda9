"""Fixed codes and tables of the guidance computer interface.

Program codes, the verb/noun dictionary used for operator log entries,
indicator lamp names and keypad key identifiers.
"""

from enum import Enum

# =============================================================================
# Program and Command Codes
# =============================================================================

PROGRAM_IDLE = "00"
PROGRAM_BRAKING = "63"      # Powered descent braking phase
PROGRAM_APPROACH = "64"     # Approach phase
PROGRAM_MANUAL = "66"       # Terminal descent, manual throttle

# Programs selectable with V37
PROGRAM_CODES: frozenset[str] = frozenset({
    PROGRAM_IDLE,
    PROGRAM_BRAKING,
    PROGRAM_APPROACH,
    PROGRAM_MANUAL,
})

# Descent programs that light the ALT and VEL lamps
LANDING_PROGRAMS: frozenset[str] = frozenset({
    PROGRAM_BRAKING,
    PROGRAM_APPROACH,
    PROGRAM_MANUAL,
})

VERB_DISPLAY_ALARM = "05"
VERB_DISPLAY_DECIMAL = "06"
VERB_MONITOR_DECIMAL = "16"
VERB_LAMP_TEST = "35"
VERB_RUN_PROGRAM = "37"
VERB_PLEASE_PERFORM = "50"

NOUN_ALARM_CODES = "09"
NOUN_CHECKLIST_ACTION = "25"
NOUN_FLIGHT_DATA = "62"

MONITOR_VERBS: frozenset[str] = frozenset({VERB_DISPLAY_DECIMAL, VERB_MONITOR_DECIMAL})

# Display left after RSET and after ignition
FLIGHT_MONITOR = (VERB_MONITOR_DECIMAL, NOUN_FLIGHT_DATA)

UNSET = "00"
ZERO_REGISTER = "+00000"
LAMP_TEST_REGISTER = "+88888"


# =============================================================================
# Dictionary
# =============================================================================

VERBS: dict[str, str] = {
    "01": "Display Erasable Mem",
    "03": "Display R1 Octal",
    "04": "Display R1/R2 Octal",
    "05": "Display R1/R2/R3 Octal",
    "06": "Display Decimal",
    "11": "Monitor Erasable Mem",
    "16": "Monitor Decimal",
    "21": "Load Component 1",
    "22": "Load Component 2",
    "23": "Load Component 3",
    "33": "Proceed Without Data",
    "34": "Terminate Program",
    "35": "Lamp Test",
    "37": "Run Program",
    "46": "Select Manual Control",
    "49": "Crew Maneuver",
    "50": "Please Perform",
    "69": "Restart",
    "75": "Start Launch Control",
    "82": "Display Orbit Info",
    "91": "Display Checksum",
    "99": "Confirm Burn",
}

NOUNS: dict[str, str] = {
    "00": "Not Applicable",
    "01": "Specify Address",
    "02": "Erasable Mem Addr",
    "09": "Alarm Codes",
    "14": "Desired Delta-V",
    "18": "IMU Angles",
    "23": "Burn Details",
    "25": "Checklist Action",
    "29": "Launch Azimuth",
    "33": "Time to Ignition",
    "34": "Time Next Event",
    "35": "Time Next Event",
    "36": "Time/Vel/Alt",
    "38": "Time Since Boot",
    "43": "Lat/Long/Alt",
    "44": "Orbit Info",
    "50": "Apo/Peri/Fuel",
    "60": "FwdVel/AltRate/Alt",
    "61": "Time-to-go/Crossrange",
    "62": "Vel/Alt/DeltaH",
    "63": "DeltaAlt/Rate/Alt",
    "64": "LPD Time/Angle",
    "68": "Landing Radar",
    "69": "Restart",
    "73": "Flight Trajectory",
    "74": "Time/Yaw/Pitch",
    "76": "Desired Vel/Crossrange",
    "89": "Landing Site",
    "94": "Orbit/Alt Info",
    "95": "Burn Details",
}

PROGRAMS: dict[str, str] = {
    "00": "P00: Idle",
    "01": "P01: Pre-Launch IMU Align",
    "02": "P02: Pre-Launch Setup",
    "06": "P06: Standby",
    "11": "P11: Launch Control",
    "12": "P12: Ascent to Orbit",
    "15": "P15: TLI Burn",
    "16": "P16: Lunar Orbit Insert",
    "17": "P17: Descent Orbit Insert",
    "18": "P18: Orbit Align",
    "19": "P19: Orbit Adjust",
    "32": "P32: CSI Coelliptic",
    "33": "P33: CDH Const Delta H",
    "34": "P34: TPI Transfer Init",
    "35": "P35: TPM Transfer Mid",
    "36": "P36: Rendezvous Braking",
    "40": "P40: DPS Burn",
    "41": "P41: RCS Burn",
    "42": "P42: APS Burn",
    "63": "P63: LM PDI Braking",
    "64": "P64: LM Approach",
    "65": "P65: LM Auto Landing",
    "66": "P66: LM Manual Landing",
    "68": "P68: Landing Confirm",
    "70": "P70: LM DPS Abort",
    "71": "P71: LM APS Abort",
}


def describe_verb(code: str) -> str:
    """Dictionary name of a verb code, or ``UNK``."""
    return VERBS.get(code, "UNK")


def describe_noun(code: str) -> str:
    """Dictionary name of a noun code, or ``UNK``."""
    return NOUNS.get(code, "UNK")


# =============================================================================
# Indicators
# =============================================================================


class IndicatorName(str, Enum):
    """Status lamps on the display and keyboard."""

    COMP_ACTY = "COMP_ACTY"
    UPLINK_ACTY = "UPLINK_ACTY"
    TEMP = "TEMP"
    NO_ATT = "NO_ATT"
    GIMBAL_LOCK = "GIMBAL_LOCK"
    PROG = "PROG"
    RESTART = "RESTART"
    TRACKER = "TRACKER"
    ALT = "ALT"
    VEL = "VEL"
    OPR_ERR = "OPR_ERR"
    KEY_REL = "KEY_REL"
    STBY = "STBY"


def initial_indicators() -> dict[IndicatorName, bool]:
    """Lamp state after power-up or scenario load (only STBY lit)."""
    lamps = {name: False for name in IndicatorName}
    lamps[IndicatorName.STBY] = True
    return lamps


# =============================================================================
# Keys
# =============================================================================


class Key(str, Enum):
    """Keypad keys other than the digits."""

    VERB = "VERB"
    NOUN = "NOUN"
    ENTR = "ENTR"
    CLR = "CLR"
    KEY_REL = "KEY_REL"
    PRO = "PRO"
    RSET = "RSET"
    THRUST_UP = "THRUST_UP"
    THRUST_DOWN = "THRUST_DOWN"
    LAMP_TEST = "LAMP_TEST"


DIGITS: frozenset[str] = frozenset("0123456789")


def normalize_key(key: "Key | str | int") -> "Key | str":
    """Map a raw key identifier to a :class:`Key` or a single digit string.

    Accepts enum members, their names (case-insensitive, ``KEY REL`` and
    ``KEY_REL`` both work) and digits as ``int`` or ``str``.

    Raises:
        ValueError: if the identifier is not a known key
    """
    if isinstance(key, Key):
        return key
    if isinstance(key, int) and not isinstance(key, bool):
        key = str(key)
    if isinstance(key, str):
        text = key.strip().upper().replace(" ", "_")
        if text in DIGITS:
            return text
        try:
            return Key(text)
        except ValueError:
            pass
    raise ValueError(f"Unknown key: {key!r}")
