"""
Configuration module for the sleigh scheduler.
Loads settings from environment variables or .env file.
调度器配置模块。
从环境变量或 .env 文件加载所有配置项。
"""

import os
from dotenv import load_dotenv

load_dotenv()  # 自动读取项目根目录的 .env 文件（若存在），优先级低于系统环境变量

# --- Worker Pool ---
# --- 工人池 ---
# Production values solve the real puzzle input; override via .env or env vars.
# 生产值用于真实谜题输入；可通过 .env 或环境变量覆盖。
WORKER_COUNT = int(os.getenv("WORKER_COUNT", "5"))      # 并发工人数（WorkerSlot 数量）
BASE_DURATION = int(os.getenv("BASE_DURATION", "60"))   # 每个任务时长的固定偏移量（秒）

# --- Calibration ---
# --- 校准模式（对应谜题中的示例）---
CALIBRATION_WORKER_COUNT = 2   # 示例：1 名精灵帮忙，共 2 名工人
CALIBRATION_BASE_DURATION = 0  # 示例：A=1, B=2, ... Z=26

# --- Simulation Guard ---
# --- 仿真保护 ---
# 0 means "derive the cap from the graph" (sum of all durations).
# 0 表示由图自动推导上限（所有任务时长之和）。
MAX_TICKS = int(os.getenv("MAX_TICKS", "0"))

# --- Input ---
# --- 输入 ---
INPUT_PATH = os.getenv("INPUT_PATH", os.path.join("input", "input07.txt"))  # 默认指令文件路径
