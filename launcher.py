"""
命令行启动入口：设置 cwd 后前台运行 uvicorn。
"""
import argparse
import os
import sys
from pathlib import Path


def main():
    app_dir = Path(__file__).resolve().parent

    # 设置 cwd 到应用目录，保证 data/、logs/ 等相对路径有效
    os.chdir(app_dir)

    # 开发模式下确保 src 在 PYTHONPATH
    src_dir = str(app_dir / "src")
    if src_dir not in sys.path:
        sys.path.insert(0, src_dir)

    import uvicorn
    from tapscript.core.config import settings

    parser = argparse.ArgumentParser(description="tapscript 控制服务")
    parser.add_argument("--host", default=settings.api_host)
    parser.add_argument("--port", type=int, default=settings.api_port)
    args = parser.parse_args()

    print(f"[tapscript] 正在启动服务 http://{args.host}:{args.port} ...")
    uvicorn.run("tapscript.main:app", host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
