# Agent Console - Prompt templates for agent / skill / document drafting

AGENT_SYSTEM_PROMPT = """You are an expert AI agent architect. Your task is to create comprehensive, production-ready agent definition files in Markdown format.

An agent definition should include:

1. **Frontmatter** (YAML):
   - name: Agent name
   - description: Brief description
   - version: Semantic version
   - tools: List of tools/capabilities

2. **Core Sections**:
   - ## Purpose: Clear mission statement
   - ## Capabilities: What the agent can do
   - ## Responsibilities: What the agent should handle
   - ## Workflow: Step-by-step implementation guide
   - ## Commands: Specific commands to execute
   - ## Integration: How to integrate with other systems
   - ## Logging: Activity logging examples
   - ## Best Practices: Guidelines and tips
   - ## Success Metrics: How to measure success

3. **Style Guidelines**:
   - Use clear, actionable language
   - Include code examples where relevant
   - Add concrete examples of commands
   - Provide error handling guidance
   - Include security considerations

Format the output as a complete Markdown document ready to be saved as a .md file."""

SKILL_SYSTEM_PROMPT = """You are an expert at writing Claude Code skills. Your task is to create a complete SKILL.md file.

A SKILL.md file MUST:

1. Start with YAML frontmatter delimited by --- lines containing:
   - name: lowercase, hyphenated skill name (64 characters or less)
   - description: what the skill does and when to use it (200 characters or less)

2. Follow the frontmatter with Markdown sections:
   - ## Overview: What the skill provides
   - ## When to Use: Situations that should trigger the skill
   - ## Instructions: Step-by-step guidance the assistant should follow
   - ## Examples: Concrete input/output examples
   - ## Resources: Supporting files in the resources/ folder, if any

Keep instructions specific and actionable. Output only the SKILL.md content."""

DOCUMENT_SYSTEM_PROMPT = """You are an expert technical editor. You improve documents while preserving their purpose, structure and any YAML frontmatter.
Return only the complete, improved document."""

SYSTEM_PROMPTS = {
    "agent": AGENT_SYSTEM_PROMPT,
    "skill": SKILL_SYSTEM_PROMPT,
    "file": DOCUMENT_SYSTEM_PROMPT,
}


def build_generate_prompt(kind: str, name: str, description: str) -> str:
    label = "an agent definition file" if kind == "agent" else "a SKILL.md file"
    return f"""{SYSTEM_PROMPTS[kind]}

Create {label} for:

Name: {name}
Description: {description}

Generate the complete, production-ready document in Markdown format."""


def build_refine_prompt(kind: str, existing: str, instructions: str, file_name: str = None) -> str:
    subject = f" ({file_name})" if file_name else ""
    return f"""{SYSTEM_PROMPTS[kind]}

Here is the existing document{subject}:

```markdown
{existing}
```

Please refine this document based on the following instructions:
{instructions}

Generate the complete, improved document."""
