# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
psforge: build and release orchestration for PowerShell script modules.

The package is split by concern:
  tasks      task registry, incremental checks, execution engine
  assembler  fragment parsing and single-file module assembly
  manifest   module manifest parsing, version arithmetic, surgical rewrite
  tools      adapters around git, pwsh, dotnet and gh
  pipeline   the standard Clean/Build/Test/Publish task graph
"""

__version__ = "0.1.0"
