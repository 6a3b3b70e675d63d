"""
Retrieval Stage Hooks

Before/after callbacks around the orchestrator's stages
(classify, fetch, dedupe, rerank, confidence) for tracing and
custom instrumentation.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger("clone_retrieval.hooks")

RETRIEVAL_STAGES = ("classify", "fetch", "dedupe", "rerank", "confidence")

Hook = Callable[..., Awaitable[None]]


class PipelineHookManager:
    """
    Registry of async callbacks keyed by stage name.

    Stage hooks are called with the shared context dict; wildcard ("*")
    hooks are called with (stage, context). A failing hook is logged and
    skipped, so instrumentation never changes what retrieve() returns.

    Example:
        >>> hooks = PipelineHookManager()
        >>>
        >>> @hooks.after("rerank")
        >>> async def log_rerank(context):
        >>>     print(f"{len(context['results'])} results after rerank")
    """

    def __init__(self):
        self.before_hooks: Dict[str, List[Hook]] = {}
        self.after_hooks: Dict[str, List[Hook]] = {}

    def register_before(self, stage: str, hook: Hook) -> None:
        self.before_hooks.setdefault(stage, []).append(hook)
        logger.debug(f"Registered before hook for stage: {stage}")

    def register_after(self, stage: str, hook: Hook) -> None:
        self.after_hooks.setdefault(stage, []).append(hook)
        logger.debug(f"Registered after hook for stage: {stage}")

    def before(self, stage: str):
        """Decorator form of register_before."""
        def decorator(func: Hook) -> Hook:
            self.register_before(stage, func)
            return func
        return decorator

    def after(self, stage: str):
        """Decorator form of register_after."""
        def decorator(func: Hook) -> Hook:
            self.register_after(stage, func)
            return func
        return decorator

    async def execute_before(self, stage: str, context: Dict[str, Any]) -> None:
        """Run wildcard hooks, then hooks for this stage."""
        await self._run("Before", stage, context, self.before_hooks.get("*", []), wildcard=True)
        await self._run("Before", stage, context, self.before_hooks.get(stage, []), wildcard=False)

    async def execute_after(self, stage: str, context: Dict[str, Any]) -> None:
        """Run hooks for this stage, then wildcard hooks."""
        await self._run("After", stage, context, self.after_hooks.get(stage, []), wildcard=False)
        await self._run("After", stage, context, self.after_hooks.get("*", []), wildcard=True)

    async def _run(
        self,
        phase: str,
        stage: str,
        context: Dict[str, Any],
        hooks: List[Hook],
        wildcard: bool,
    ) -> None:
        for hook in hooks:
            try:
                if wildcard:
                    await hook(stage, context)
                else:
                    await hook(context)
            except Exception as e:
                logger.error(f"{phase} hook failed for stage '{stage}': {e}", exc_info=True)

    def clear_hooks(self, stage: Optional[str] = None) -> None:
        """Clear hooks for one stage, or every hook when stage is None."""
        if stage:
            self.before_hooks.pop(stage, None)
            self.after_hooks.pop(stage, None)
        else:
            self.before_hooks.clear()
            self.after_hooks.clear()

    def get_hook_count(self, stage: Optional[str] = None) -> Dict[str, int]:
        """Get count of registered hooks."""
        if stage:
            return {
                "before": len(self.before_hooks.get(stage, [])),
                "after": len(self.after_hooks.get(stage, [])),
            }
        total_before = sum(len(hooks) for hooks in self.before_hooks.values())
        total_after = sum(len(hooks) for hooks in self.after_hooks.values())
        return {
            "before": total_before,
            "after": total_after,
            "total": total_before + total_after,
        }
