# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Task-graph build engine.

A build is a set of named tasks with dependencies. The registry turns a
requested task into an ordered plan, the incremental engine decides whether a
task's outputs are already up to date, and the executor runs the plan
fail-fast, passing a single BuildContext through every task body.
"""
