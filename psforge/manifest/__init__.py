# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Module manifest handling.

The manifest is a PowerShell data file (`@{ Key = Value }`). We parse it with
a small dedicated parser that remembers where every top-level value sits in
the source text, so a version bump rewrites exactly those characters and
leaves comments, spacing and line endings alone.
"""
