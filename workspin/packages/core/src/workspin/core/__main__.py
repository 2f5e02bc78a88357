"""CLI 入口模块 -- python -m workspin.core <command>

支持的命令：
  init-db    创建数据库文件并初始化表结构
  seed-demo  写入演示用户、频道、标签页、项目和任务
"""

import asyncio
import sys

from .config import get_db_path

_USAGE = """用法: python -m workspin.core <command>
命令:
  init-db    创建数据库文件并初始化表结构
  seed-demo  写入演示用户、频道、标签页、项目和任务"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "seed-demo":
        asyncio.run(seed_demo_data())
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, seed-demo")
        sys.exit(1)


async def init_database() -> None:
    """创建 Store 实例组即完成建表"""
    from .store import create_store_group, verify_wal_mode

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    try:
        wal = await verify_wal_mode(store_group.conn)
        print(f"初始化完成，WAL 模式: {'是' if wal else '否'}")
    finally:
        await store_group.close()


async def seed_demo_data() -> None:
    """写入演示数据"""
    from .seed import seed_demo
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    try:
        ids = await seed_demo(store_group)
        for key, value in ids.items():
            print(f"  {key}: {value or '-'}")
    finally:
        await store_group.close()


if __name__ == "__main__":
    main()
