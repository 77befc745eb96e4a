"""kioku: spaced-repetition review scheduling for vocabulary study."""

from kioku.consts import VERSION

__version__ = VERSION
