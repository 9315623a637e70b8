# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release artifacts and registry publishing.

Package produces two artifacts directly under the output folder:

    <Output>/<Module>.<Version>.zip     attached to the GitHub release
    <Output>/<Module>.<Version>.nupkg   the same package PSGallery receives

The nupkg is made by publishing to a throwaway local repository rooted at the
output folder, so it is byte-for-byte what Publish-Module would upload.

The registry API key never appears on a command line: it is handed to pwsh
through an environment variable.
"""

import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Mapping, Optional

from psforge.logging.logger import get_logger
from psforge.tools.exceptions import ExternalProcessFailure, MissingCredential
from psforge.tools.pwsh import PowerShell, quote

_logger: logging.Logger = get_logger(__name__)

_API_KEY_VARIABLE = "PSFORGE_NUGET_API_KEY"


def create_archive(build_dir: Path, output_dir: Path, module_name: str, version: str) -> Path:
    """Zip the contents of the build directory into <output>/<Module>.<Version>.zip."""
    base_name = output_dir / f"{module_name}.{version}"
    archive = Path(shutil.make_archive(str(base_name), "zip", root_dir=str(build_dir)))
    _logger.info("Created archive", extra={"archive": str(archive)})
    return archive


def create_nupkg(pwsh: PowerShell, build_dir: Path, output_dir: Path, module_name: str, version: str) -> Path:
    """
    Produce <output>/<Module>.<Version>.nupkg via a temporary local repository.

    Raises:
        ExternalProcessFailure: Publishing failed, or no package appeared.
    """
    repository = f"psforge-{uuid.uuid4().hex[:8]}"
    script = (
        f"Register-PSRepository -Name {quote(repository)} "
        f"-SourceLocation {quote(str(output_dir))} "
        f"-PublishLocation {quote(str(output_dir))} -InstallationPolicy Trusted\n"
        "try {\n"
        f"    Publish-Module -Path {quote(str(build_dir))} -Repository {quote(repository)}\n"
        "} finally {\n"
        f"    Unregister-PSRepository -Name {quote(repository)}\n"
        "}\n"
    )
    result = pwsh.run(script)

    nupkg = output_dir / f"{module_name}.{version}.nupkg"
    if not nupkg.is_file():
        raise ExternalProcessFailure(
            "pwsh", ["Publish-Module"], result.returncode,
            f"Expected package {nupkg} was not produced\n{result.output}",
        )
    _logger.info("Created package", extra={"package": str(nupkg)})
    return nupkg


def resolve_api_key(
    pwsh: PowerShell,
    explicit: Optional[str],
    env_var: str,
    secret_name: str,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Find the registry API key: explicit value, then environment, then secret store.

    Raises:
        MissingCredential: None of the three sources has a key.
    """
    if explicit:
        return explicit

    environ = os.environ if environ is None else environ
    from_env = environ.get(env_var, "").strip()
    if from_env:
        _logger.debug("Using API key from environment", extra={"variable": env_var})
        return from_env

    try:
        result = pwsh.run(
            "Import-Module Microsoft.PowerShell.SecretManagement\n"
            f"Get-Secret -Name {quote(secret_name)} -AsPlainText"
        )
    except ExternalProcessFailure as err:
        raise MissingCredential(
            f"No API key given, ${env_var} is unset, and secret '{secret_name}' "
            f"could not be read: {err.output.strip()}"
        ) from err

    secret = result.output.strip()
    if not secret:
        raise MissingCredential(f"Secret '{secret_name}' is empty")
    _logger.debug("Using API key from secret store", extra={"secret": secret_name})
    return secret


def publish_module(pwsh: PowerShell, build_dir: Path, api_key: str, repository: str = "PSGallery") -> None:
    script = (
        f"Publish-Module -Path {quote(str(build_dir))} -Repository {quote(repository)} "
        f"-NuGetApiKey $env:{_API_KEY_VARIABLE}"
    )
    pwsh.run(script, env={_API_KEY_VARIABLE: api_key})
    _logger.info("Published module", extra={"repository": repository, "path": str(build_dir)})
