# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Root of the psforge exception hierarchy.

Each subsystem defines its own errors in a local exceptions module and
derives them from PsforgeError, so the CLI can catch everything a build run
can raise with one except clause.
"""


class PsforgeError(Exception):
    """Base for every error raised deliberately by psforge."""
