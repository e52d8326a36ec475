"""Tests for compensating action stacks."""

from pgdb_agent.core.rollback import Rollback


class TestRollback:
    """Tests for Rollback."""

    async def test_runs_newest_first(self) -> None:
        order: list[str] = []
        rollback = Rollback(subject="orders")

        for step in ("volume", "container"):

            async def action(step: str = step) -> None:
                order.append(step)

            rollback.push(f"remove {step}", action)

        await rollback.run()

        assert order == ["container", "volume"]
        assert len(rollback) == 0

    async def test_failed_step_does_not_stop_the_rest(self) -> None:
        order: list[str] = []
        rollback = Rollback(subject="orders")

        async def remove_volume() -> None:
            order.append("volume")

        async def remove_container() -> None:
            raise RuntimeError("engine unreachable")

        rollback.push("remove volume", remove_volume)
        rollback.push("remove container", remove_container)

        await rollback.run()

        assert order == ["volume"]

    async def test_clear_skips_actions(self) -> None:
        called = False
        rollback = Rollback(subject="orders")

        async def action() -> None:
            nonlocal called
            called = True

        rollback.push("remove volume", action)
        rollback.clear()
        await rollback.run()

        assert not called
