# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""The standard build and release task graph for a script module."""
