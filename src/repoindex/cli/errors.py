"""repoindex rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from repoindex.cli.errors import err_no_token
    console.print(err_no_token())
    raise typer.Exit(1)
"""

from __future__ import annotations

_PROVIDER_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "azure": "AZURE_API_KEY",
}


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'anthropic'. Set:  export ANTHROPIC_API_KEY=sk-...
    """
    env_var = _PROVIDER_ENV.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_token() -> str:
    """No GitHub token in --token or GITHUB_TOKEN."""
    return (
        "[red]Error:[/] No GitHub access token.\n"
        "  Set:  export GITHUB_TOKEN=ghp_...\n"
        "  or pass --token."
    )


def err_no_db(db_path: str = ".repoindex.db") -> str:
    """No .repoindex.db found."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  repoindex connect OWNER/REPO"
    )


def err_invalid_repo(value: str) -> str:
    return (
        f"[red]Error:[/] '{value}' is not a repository name.\n"
        "  Use the OWNER/REPO form, e.g.  repoindex connect octocat/hello-world"
    )


def err_connection_not_found(repo_name: str, workspace: str) -> str:
    return (
        f"[yellow]Not connected:[/] '{repo_name}' is not linked to workspace '{workspace}'.\n"
        "  Run:  repoindex status  to see all connections."
    )


def err_no_connections(workspace: str) -> str:
    return (
        f"[yellow]No connections[/] in workspace '{workspace}'.\n"
        "  Run:  repoindex connect OWNER/REPO"
    )


def err_ambiguous_connection(names: list[str]) -> str:
    """More than one connection and no --repo given."""
    listed = "\n".join(f"    --repo {n}" for n in names)
    return (
        "[red]Error:[/] Several repositories are connected; choose one:\n"
        f"{listed}"
    )


def err_already_connected(repo_name: str) -> str:
    return (
        f"[yellow]Already connected:[/] '{repo_name}'.\n"
        f"  Run:  repoindex sync --repo {repo_name}  to pick up changes."
    )


def err_sync_in_progress(repo_name: str) -> str:
    """A run is already marked as syncing."""
    return (
        f"[red]Error:[/] A sync is already running for '{repo_name}'.\n"
        "  Wait for it to finish. If a previous run crashed, re-run with --force."
    )


def err_sync_failed(repo_name: str, message: str | None) -> str:
    return (
        f"[red]✗ Sync failed for {repo_name}:[/] {message or 'unknown error'}\n"
        "  Fix the cause and run:  repoindex sync"
    )


def err_github(message: str) -> str:
    """GitHub API call failed before a run could start."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Check the repository name and that the token can read it."
    )


def err_config(message: str) -> str:
    """Config file rejected by load_config()."""
    return (
        f"[red]Error:[/] Invalid configuration.\n  {message}\n"
        "  Check repoindex.yaml and ~/.repoindex/config.yaml."
    )


def err_invalid_module_type(value: str, allowed: list[str]) -> str:
    return (
        f"[red]Error:[/] Unknown module type '{value}'.\n"
        f"  Allowed: {', '.join(allowed)}"
    )
