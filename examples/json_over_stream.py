'''
Two engines talking newline delimited JSON over a byte stream.

'''
import trio
import trio.testing
import birpc
from birpc.msg import mk_codec


def divide(x: float, y: float) -> float:
    return x / y


def attach(
    stream: trio.abc.Stream,
    tn: trio.Nursery,
) -> dict:
    send_lock = trio.Lock()

    async def post(data: bytes) -> None:
        async with send_lock:
            await stream.send_all(data + b'\n')

    async def pump(handler) -> None:
        buf = b''
        while chunk := await stream.receive_some():
            buf += chunk
            *lines, buf = buf.split(b'\n')
            for line in lines:
                tn.start_soon(handler, line)

    def on(handler) -> None:
        tn.start_soon(pump, handler)

    return {'post': post, 'on': on}


async def main():
    codec = mk_codec('json')
    left, right = trio.testing.memory_stream_pair()

    async with trio.open_nursery() as tn:
        async with (
            birpc.open_birpc(
                {'math': {'divide': divide}},
                serialize=codec.serialize,
                deserialize=codec.deserialize,
                **attach(left, tn),
            ),
            birpc.open_birpc(
                {},
                serialize=codec.serialize,
                deserialize=codec.deserialize,
                timeout=1,
                **attach(right, tn),
            ) as client,
        ):
            print(await client.fn('math', 'divide').invoke(1, 4))

            try:
                await client['math.divide'].invoke(1, 0)
            except birpc.FunctionError as err:
                print(f'Remote raised {err.boxed_type.__name__}: {err}')

        tn.cancel_scope.cancel()


if __name__ == '__main__':
    trio.run(main)
