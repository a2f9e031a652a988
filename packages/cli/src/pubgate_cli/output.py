"""Emit step outputs for the surrounding CI pipeline.

Inside GitHub Actions, outputs are appended to the file named by
GITHUB_OUTPUT using the delimiter syntax, which is safe for multi-line
values. Everywhere else they are printed as ``name=value`` lines, with
multi-line values JSON-encoded so every output stays on one line.
"""

from __future__ import annotations

import json
import os
import uuid

import click

from pubgate_core.models import PublishDecision, VersionMetadataResult


def _stringify(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def emit_outputs(outputs: dict[str, object]) -> None:
    output_path = os.environ.get("GITHUB_OUTPUT")
    if not output_path:
        for name, value in outputs.items():
            text = _stringify(value)
            if "\n" in text:
                text = json.dumps(text)
            click.echo(f"{name}={text}")
        return

    with open(output_path, "a", encoding="utf-8") as f:
        for name, value in outputs.items():
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            f.write(f"{name}<<{delimiter}\n{_stringify(value)}\n{delimiter}\n")


def append_step_summary(markdown: str) -> None:
    summary_path = os.environ.get("GITHUB_STEP_SUMMARY")
    if not summary_path:
        return
    with open(summary_path, "a", encoding="utf-8") as f:
        f.write(markdown + "\n")


def metadata_outputs(result: VersionMetadataResult) -> dict[str, object]:
    data = result.to_dict()
    outputs: dict[str, object] = {
        "changed": result.changed,
        "oldVersion": result.old_version,
        "newVersion": result.new_version,
        "commitBase": result.commit_base,
        "commitHead": result.commit_head,
        "changedFiles": data["changedFiles"],
        "changes": data["changes"],
        "json": data,
    }
    if result.changed:
        outputs["type"] = result.type
        outputs["commitResponsible"] = result.commit_responsible
    return outputs


def publish_outputs(decision: PublishDecision) -> dict[str, object]:
    outputs: dict[str, object] = {"publish": decision.publish}
    if decision.version is not None:
        outputs["version"] = decision.version
    outputs["reason"] = decision.reason
    outputs["json"] = decision.to_dict()
    return outputs
