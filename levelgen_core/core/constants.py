# ==============================================================================
# Файл: levelgen_core/core/constants.py
# Назначение: Глобальные константы генератора уровней (биомы, каналы, тюнинг).
# ==============================================================================
from __future__ import annotations
from typing import Dict, Tuple

# =======================================================================
# СЛОЙ 1: БИОМЫ
# =======================================================================

# --- Шаг 1: Строковые константы для удобства в коде ---
BIOME_HOME = "home"
BIOME_SAFE = "safe"
BIOME_FOREST = "forest"
BIOME_CAVE = "cave"
BIOME_MUSHROOM = "mushroom"
BIOME_TEMPLE = "temple"
BIOME_MEAT = "meat"
BIOME_BOSS = "boss"

# --- Шаг 2: Раскладка каналов в карте биомов. Это "центр правды". ---
# Канал 0 хранит характерный радиус части, остальные - веса биомов.
CHANNEL_RADIUS = 0

BIOME_KIND_TO_CHANNEL: Dict[str, int] = {
    BIOME_HOME: 1,
    BIOME_SAFE: 2,
    BIOME_FOREST: 3,
    BIOME_CAVE: 4,
    BIOME_MUSHROOM: 5,
    BIOME_TEMPLE: 6,
    BIOME_MEAT: 7,
    BIOME_BOSS: 8,
}

# --- Шаг 3: Обратный словарь и кортеж всех известных биомов ---
BIOME_CHANNEL_TO_KIND: Dict[int, str] = {v: k for k, v in BIOME_KIND_TO_CHANNEL.items()}
BIOME_KINDS: Tuple[str, ...] = tuple(
    BIOME_CHANNEL_TO_KIND[i] for i in sorted(BIOME_CHANNEL_TO_KIND)
)

START_BIOME = 1
END_BIOME = START_BIOME + len(BIOME_KINDS)
BIOME_CHANNELS = END_BIOME

# Фон карты: там, где нет ни одной части
FALLBACK_BIOME = BIOME_FOREST
FALLBACK_RADIUS = 1.0

# =======================================================================
# СЛОЙ 2: ГЕОМЕТРИЯ И ТЮНИНГ
# =======================================================================

# Отступ вокруг каждой части (в мировых единицах, по каждой оси)
PART_GAP: Tuple[float, float] = (1.0, 1.0)

# Сколько соединительных ребер получает каждая новая часть
STITCH_EDGES = 2
STITCH_NEIGHBOURS = 2

# Попыток на активную точку в алгоритме Бридсона
POISSON_ATTEMPTS = 30

# Размытие карты биомов (в клетках)
BIOME_BLUR_SIGMA = 8.0

# Профиль высот вокруг дорог
ROAD_WIDTH_FACTOR = 0.25
MAX_HEIGHT_FACTOR = 0.5
HEIGHT_SLOPE_GAIN = 3.0
HEIGHT_SLOPE_POWER = 0.75
HEIGHT_EPS = 1e-4

# Относительный допуск для точек, лежащих ровно на окружности Габриэля
GABRIEL_TOLERANCE = 1e-9

# Погрешность растеризации осевой линии (клетки): Брезенхэм + билинейная выборка
WALK_TOLERANCE_CELLS = 2.0
