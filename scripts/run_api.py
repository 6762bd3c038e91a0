#!/usr/bin/env python3
"""
FastAPIサーバーを起動するエントリポイント
"""
import sys
from pathlib import Path

# プロジェクトルートをPYTHONPATHに追加
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uvicorn

from infrastructure.config.settings import load_settings

if __name__ == "__main__":
    settings = load_settings()
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True  # 開発時の自動リロード
    )
