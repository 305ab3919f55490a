"""Turn a directory of black/white frames into a Logic World display circuit."""

from .errors import GenerationError, InputShapeError, MissingComponentTypeError, NumericRangeError
from .frames import FrameSource
from .generator import InjectionReport, generate
from .readback import DisplayReader
from .settings import GeneratorSettings, SettingsManager
