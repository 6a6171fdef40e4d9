"""
Нормализованная похожесть строк на основе расстояния Левенштейна.

    similarity("cat", "cats")  # 0.75
    similarity("", "")         # 1.0
"""


def levenshtein_distance(a: str, b: str) -> int:
    """Число вставок, удалений и замен символов, переводящих a в b"""
    if not a:
        return len(b)
    if not b:
        return len(a)

    # Храним только предыдущую строку матрицы
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,         # удаление
                current[j - 1] + 1,      # вставка
                previous[j - 1] + cost,  # замена
            ))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """
    Похожесть двух строк от 0 до 1 (1 — полное совпадение).

    Регистр и пробелы по краям не учитываются.
    """
    a = a.strip().lower()
    b = b.strip().lower()

    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max_len
