from enum import StrEnum


class Scope(StrEnum):
    GLOBAL = "global"
    CONTEXT_LOCAL = "context_local"
