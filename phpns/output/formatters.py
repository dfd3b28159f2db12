import json
from typing import Any


def format_output(data: Any, output_format: str = "plain") -> str:
    if output_format == "json":
        return json.dumps(data, indent=2)
    return format_plain(data)


def format_plain(data: Any) -> str:
    if data is None:
        return ""

    if isinstance(data, str):
        return data

    if isinstance(data, dict):
        if "error" in data:
            return f"Error: {data['error']}"

        if "details" in data and "total_files" in data:
            return format_batch_result(data)

        if "new_fqn" in data and "references_updated" in data:
            return format_move_result(data)

        return json.dumps(data, indent=2)

    if isinstance(data, list):
        if not data:
            return "No results"
        return "\n".join(format_plain(item) for item in data)

    return str(data)


def format_move_result(result: dict) -> str:
    if not result.get("success"):
        return f"Error: {result['message']}"
    lines = [result["message"]]
    if result.get("new_fqn"):
        lines.append(f"  New FQN: {result['new_fqn']}")
    lines.append(f"  References updated: {result.get('references_updated', 0)}")
    return "\n".join(lines)


def format_batch_result(result: dict) -> str:
    lines = [result["message"]]
    for detail in result.get("details", []):
        if detail["success"]:
            lines.append(f"  {detail['original_path']} -> {detail['new_path']} ({detail['new_fqn']})")
        else:
            lines.append(f"  {detail['original_path']}: FAILED {detail['message']}")

    failed = result.get("failed_files", 0)
    if failed:
        lines.append(f"{failed} file(s) failed")
    return "\n".join(lines)
