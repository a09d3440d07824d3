import trio
import birpc


async def hello(name: str) -> str:
    return f'Hello {name}, my name is Alice'


def hi(name: str) -> str:
    return f'Hi {name}, I am Bob'


async def main():
    async with trio.open_nursery() as tn:

        # one memory channel per direction
        alice_tx, bob_rx = trio.open_memory_channel(16)
        bob_tx, alice_rx = trio.open_memory_channel(16)

        def listen(rx):
            async def pump(handler):
                async for msg in rx:
                    # each inbound msg gets its own task so handlers
                    # can themselves call back over the channel
                    tn.start_soon(handler, msg)

            def on(handler):
                tn.start_soon(pump, handler)

            return on

        async with (
            birpc.open_birpc(
                {'hello': hello},
                post=alice_tx.send_nowait,
                on=listen(alice_rx),
            ) as alice,
            birpc.open_birpc(
                {'hi': hi},
                post=bob_tx.send_nowait,
                on=listen(bob_rx),
            ) as bob,
        ):
            print(await bob['hello'].invoke('Bob'))
            print(await alice['hi'].invoke('Alice'))

            # fire-and-forget, nothing comes back
            bob['hello'].send('nobody')

        tn.cancel_scope.cancel()


if __name__ == '__main__':
    trio.run(main)
