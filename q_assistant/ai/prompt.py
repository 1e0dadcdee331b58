from typing import Dict, List

from ..models import SystemContext
from .llm import LLMClient


SYSTEM_PROMPT_TEMPLATE = """You are a command-line assistant that helps users by generating shell commands.

{system_information}Your task is to:
1. Understand the user's intent from their natural language query
2. Generate the appropriate shell command for their system
3. Provide a clear explanation of what the command does
4. Warn about potentially destructive operations

Respond ONLY with a JSON object in this exact format:
{{
  "command": "the actual command to run",
  "explanation": "clear explanation of what this command does",
  "warning": "optional warning about destructive operations, or null if safe"
}}

Important:
- Generate commands appropriate for {target}
- Be concise but clear in explanations
- Always include warnings for commands that delete, modify, or move files
- If the request is ambiguous, make reasonable assumptions but mention them in the explanation
- If you need the user to provide specific values (like IDs, names, paths), use the syntax {{{{VARIABLE_NAME}}}} (e.g., {{{{VPC_ID}}}}, {{{{FILE_PATH}}}}). Do NOT use generic placeholders like <vpc-id> or [name].
- Return ONLY the JSON object, no other text"""


def build_system_prompt(
    context: SystemContext,
    include_shell_info: bool = True,
    include_directory: bool = True,
) -> str:
    lines = []
    if include_shell_info:
        lines.append(f"- OS: {context.os}")
        lines.append(f"- Shell: {context.shell}")
    if include_directory:
        lines.append(f"- Current Directory: {context.current_dir}")

    system_information = ""
    if lines:
        system_information = "System Information:\n" + "\n".join(lines) + "\n\n"

    if include_shell_info:
        target = f"the {context.shell} shell on {context.os}"
    else:
        target = "the user's shell"

    return SYSTEM_PROMPT_TEMPLATE.format(
        system_information=system_information,
        target=target,
    )


def build_messages(
    query: str,
    context: SystemContext,
    include_shell_info: bool = True,
    include_directory: bool = True,
) -> List[Dict]:
    """Returns the system and user messages for a command request."""
    system_prompt = build_system_prompt(context, include_shell_info, include_directory)
    return [
        LLMClient.format_system_message(system_prompt),
        LLMClient.format_user_message(query),
    ]
