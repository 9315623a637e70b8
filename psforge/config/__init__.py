# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Build configuration: YAML file plus command-line overrides, validated by pydantic."""
