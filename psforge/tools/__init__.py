# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Adapters around the external tools a release needs.

Every tool is an opaque process run through ProcessRunner: synchronous, with
stdout and stderr captured together, and a non-zero exit turned into an
ExternalProcessFailure carrying that output verbatim.
"""
