"""
The `constants` module defines the mathematical, time and physical constants used by the TLE theory.
"""

from math import pi as PI

# Mathematical Constants
"""
Constant to convert degrees to radians. Equal to 2pi/360. Units: *rad/deg*
"""
DEG2RAD = 2.0 * PI / 360.0

"""
Constant to convert radians to degrees. Equal to 360/2pi. Units: *deg/rad*
"""
RAD2DEG = 360.0 / (PI * 2.0)

"""
Full turn. Units: *rad*
"""
TWO_PI = 2.0 * PI

# Time Constants

"""
Offset between Julian Date and Modified Julian Date. Units: *days*
"""
JD_MJD_OFFSET = 2400000.5  # Offset between Julian Date and Modified Julian Date

"""
Julian Date of 1949-12-31 00:00 UT, the origin of the SGP4 "days since 1950" epoch. Units: *days*
"""
JD_SGP4_EPOCH = 2433281.5

"""
Seconds per day. Units: *s*
"""
SECONDS_PER_DAY = 86400.0

# TLE Constants

"""
Gravitational constant of the Earth used by the TLE mean-element theory (WGS72). Units: *m^3/s^2*
"""
TLE_MU = 3.986008e14

"""
Conversion from revolutions per day to radians per second. Units: *(rad/s)/(rev/day)*
"""
REVDAY_TO_RADSEC = TWO_PI / SECONDS_PER_DAY

"""
Conversion from the TLE first mean motion derivative field (rev/day^2, already halved) to rad/s^2.
"""
NDOT_TO_RADSEC2 = PI / 1.86624e9

"""
Conversion from the TLE second mean motion derivative field (rev/day^3, already divided by 6) to rad/s^3.
"""
NDDOT_TO_RADSEC3 = PI / 5.3747712e13

"""
Default spacecraft mass reported by the TLE propagator. Units: *kg*
"""
DEFAULT_MASS = 1000.0
