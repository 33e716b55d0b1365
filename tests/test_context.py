import asyncio
import time

import pytest

from httpease import CanceledError, Context, DeadlineExceededError


def test_background_is_never_done():
    ctx = Context.background()
    assert not ctx.done()
    assert ctx.err() is None
    assert ctx.deadline is None
    assert ctx.remaining() is None


def test_cancel_propagates_to_children_only():
    parent = Context.background().with_cancel()
    child = parent.with_cancel()
    sibling = Context.background().with_cancel()

    parent.cancel()

    assert isinstance(parent.err(), CanceledError)
    assert isinstance(child.err(), CanceledError)
    assert sibling.err() is None


def test_cancelling_child_leaves_parent_live():
    parent = Context.background().with_cancel()
    child = parent.with_cancel()
    child.cancel()
    assert child.done()
    assert not parent.done()


def test_child_deadline_never_exceeds_parent():
    parent = Context.background().with_timeout(1)
    child = parent.with_timeout(60)
    assert child.deadline == parent.deadline
    assert 0 < child.remaining() <= 1


def test_expired_deadline():
    ctx = Context.background().with_deadline(time.monotonic() - 1)
    assert isinstance(ctx.err(), DeadlineExceededError)
    assert ctx.remaining() == 0


def test_cancel_after_deadline_keeps_deadline_cause():
    ctx = Context.background().with_deadline(time.monotonic() - 1)
    assert ctx.done()
    ctx.cancel()
    assert isinstance(ctx.err(), DeadlineExceededError)


async def test_wait_returns_on_cancel():
    root = Context.background().with_cancel()
    ctx = root.with_cancel()
    asyncio.get_running_loop().call_later(0.01, root.cancel)
    err = await asyncio.wait_for(ctx.wait(), timeout=1)
    assert isinstance(err, CanceledError)


async def test_wait_returns_on_deadline():
    ctx = Context.background().with_timeout(0.02)
    err = await asyncio.wait_for(ctx.wait(), timeout=1)
    assert isinstance(err, DeadlineExceededError)
    assert ctx.done()


async def test_wait_on_done_context_returns_immediately():
    ctx = Context.background().with_cancel()
    ctx.cancel()
    assert isinstance(await ctx.wait(), CanceledError)


async def test_wait_can_be_cancelled():
    ctx = Context.background()
    task = asyncio.create_task(ctx.wait())
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert ctx._waiters == []
