# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Single-file module assembly.

During development the root module dot-sources every script under Classes/,
Private/ and Public/. For release those fragments are inlined into one .psm1:
their `#requires` lines and `using` statements are hoisted, deduplicated and
sorted, and each folder's bodies are wrapped in a `#region <folder>` block.
"""
