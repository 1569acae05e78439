"""Command modules. Importing this package registers every command."""

from clearcli.cmds.base import COMMANDS, IOp, command
from clearcli.cmds.admin import initialize, repeg, updatek
from clearcli.cmds.config import configget, configinit, configset
from clearcli.cmds.user import deposit

__all__ = ["COMMANDS", "IOp", "command"]
