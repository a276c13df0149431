"""Gateway 启动入口 -- python -m taskboard.gateway [--host HOST] [--port PORT]"""

import sys

import uvicorn


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    host, port = "127.0.0.1", 8000
    i = 0
    while i < len(args):
        if args[i] == "--host" and i + 1 < len(args):
            host = args[i + 1]
            i += 2
        elif args[i] == "--port" and i + 1 < len(args):
            try:
                port = int(args[i + 1])
            except ValueError:
                print(f"无效端口: {args[i + 1]}")
                return 1
            i += 2
        else:
            print("用法: python -m taskboard.gateway [--host HOST] [--port PORT]")
            return 1

    uvicorn.run("taskboard.gateway.main:app", host=host, port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
