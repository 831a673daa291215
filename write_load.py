"""
write_load.py — async load script that shortens many URLs and checks the codes

Usage:
  python write_load.py --base http://127.0.0.1:8080 --count 2000 --concurrency 100 --out codes_created.jsonl

Every successful response is written as {"code": ..., "url": ...} per line.
At the end the script reports throughput and whether all returned codes are
distinct; with --verify it also follows each code once and checks the
redirect target.
"""
import argparse
import asyncio
import json
import random
import string
import time
from datetime import datetime, timezone

import httpx


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _rand_host():
    tlds = ["com", "net", "org", "io", "ai"]
    names = ["example", "sample", "demo", "test", "alpha", "beta", "gamma"]
    return f"{random.choice(names)}.{random.choice(tlds)}"


def _rand_path(n=6):
    alphabet = string.ascii_letters + string.digits
    return "".join(random.choice(alphabet) for _ in range(n))


async def _create_one(client: httpx.AsyncClient, base: str, idx: int):
    url = f"https://{_rand_host()}/{_rand_path(8)}?q={idx}"
    try:
        r = await client.post(f"{base}/shorten", json={"url": url}, timeout=10)
        r.raise_for_status()
        return r.json()["code"], url
    except (httpx.HTTPError, KeyError, ValueError):
        return None


async def _verify_one(client: httpx.AsyncClient, base: str, code: str, url: str) -> bool:
    try:
        r = await client.get(f"{base}/{code}", timeout=10, follow_redirects=False)
    except httpx.HTTPError:
        return False
    return r.status_code == 302 and r.headers.get("location") == url


async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:8080")
    parser.add_argument("--count", type=int, default=2000)
    parser.add_argument("--concurrency", type=int, default=100)
    parser.add_argument("--out", default="codes_created.jsonl")
    parser.add_argument("--verify", action="store_true", help="follow every code once after writing")
    args = parser.parse_args()

    start_iso = _now_iso()
    t0 = time.perf_counter()
    created = []

    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    sem = asyncio.Semaphore(args.concurrency)
    async with httpx.AsyncClient(limits=limit) as client:

        async def _task(i):
            async with sem:
                res = await _create_one(client, args.base, i)
                if res:
                    created.append(res)

        await asyncio.gather(*(_task(i) for i in range(args.count)))
        dt = time.perf_counter() - t0

        verified = None
        if args.verify:
            async def _check(code, url):
                async with sem:
                    return await _verify_one(client, args.base, code, url)

            verified = sum(await asyncio.gather(*(_check(c, u) for c, u in created)))

    with open(args.out, "w", encoding="utf-8") as out_f:
        for code, url in created:
            out_f.write(json.dumps({"code": code, "url": url}) + "\n")

    success = len(created)
    distinct = len({code for code, _ in created})
    print(f"START: {start_iso}")
    print(f"END:   {_now_iso()}")
    print(f"TOTAL: {dt:.3f} s")
    print(f"OPS:   writes={args.count}, ok={success}, fail={args.count - success}")
    print(f"CODES: distinct={distinct}{'' if distinct == success else '  <-- DUPLICATES'}")
    if verified is not None:
        print(f"CHECK: redirects ok={verified}/{success}")
    if dt > 0:
        print(f"TPS:   {success/dt:.1f} req/s")


if __name__ == "__main__":
    asyncio.run(main())
