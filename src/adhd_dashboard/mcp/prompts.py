"""MCP prompt templates for common workflows."""

from adhd_dashboard.mcp.server import mcp


@mcp.prompt()
def plan_my_day(user_id: str) -> str:
    """Generate a prompt to plan the day around energy and urgency."""
    return (
        f"Help user '{user_id}' plan their day.\n\n"
        f"Please:\n"
        f"1. Use get_suggestions to see what the dashboard recommends right now\n"
        f"2. Use list_tasks with status='todo' to see what is waiting\n"
        f"3. Use reorder_tasks on those task IDs to get an urgency-based order\n\n"
        f"Then propose a short plan: the first three tasks to do, in order, with one "
        f"sentence each on why. Keep it encouraging and concrete, and suggest a break "
        f"after each focused block."
    )


@mcp.prompt()
def break_down(task_id: str) -> str:
    """Generate a prompt to split a large task into small steps."""
    return (
        f"Task '{task_id}' feels too big to start.\n\n"
        f"Use get_task to read it, then split it into 3-6 concrete steps of 15-25 "
        f"minutes each. Each step should start with a verb and be doable without "
        f"further planning. Then use break_down_task to save the steps as subtasks."
    )


@mcp.prompt()
def weekly_review(user_id: str) -> str:
    """Generate a prompt for a gentle weekly review."""
    return (
        f"Run a weekly review for user '{user_id}'.\n\n"
        f"Use get_insights and task_stats, then write a short, kind summary:\n"
        f"1. What went well (completion rate, peak focus time)\n"
        f"2. One pattern worth adjusting\n"
        f"3. One small experiment to try next week\n\n"
        f"No guilt, no long lists."
    )
