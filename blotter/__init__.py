from .codec import BlotterFormatError, read, read_file, write, write_file
from .model import (
    IDENTITY_ROTATION,
    POSITION_SCALE,
    BlotterFile,
    Component,
    ComponentType,
    Input,
    ModVersion,
    Output,
    PegAddress,
    PegKind,
    SaveType,
    Wire,
)
