"""
Тесты похожести строк (расстояние Левенштейна).

Запуск: python -m pytest tests/test_scorer.py -v
"""

from engines.exercises.scorer import levenshtein_distance, similarity


def test_levenshtein_distance():
    """Классические примеры расстояния редактирования"""
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("abc", "") == 3
    assert levenshtein_distance("flaw", "lawn") == 2
    assert levenshtein_distance("same", "same") == 0
    print("✅ Расстояние Левенштейна считается корректно")


def test_similarity_basic():
    """Нормализация на длину более длинной строки"""
    assert similarity("cat", "cats") == 0.75, f"Ожидалось 0.75, получено {similarity('cat', 'cats')}"
    assert similarity("abc", "xyz") == 0.0
    assert abs(similarity("kitten", "sitting") - (1 - 3 / 7)) < 1e-9
    print("✅ similarity: базовые случаи")


def test_similarity_empty_strings():
    """Две пустые строки совпадают полностью, пустая и непустая — нет"""
    assert similarity("", "") == 1.0
    assert similarity("   ", "") == 1.0
    assert similarity("", "go") == 0.0


def test_similarity_ignores_case_and_outer_spaces():
    """Регистр и пробелы по краям не влияют"""
    assert similarity("  Hello ", "hello") == 1.0
    assert similarity("IS SPEAKING", "is speaking") == 1.0
    # Пробелы внутри строки учитываются
    assert similarity("is speaking", "isspeaking") < 1.0


def test_similarity_is_symmetric_and_bounded():
    """similarity(a, b) == similarity(b, a) и лежит в [0, 1]"""
    pairs = [("go", "goes"), ("had studied", "has studied"), ("", "x"), ("abc", "cab")]
    for a, b in pairs:
        forward, backward = similarity(a, b), similarity(b, a)
        assert forward == backward, f"Несимметрично для {a!r}, {b!r}"
        assert 0.0 <= forward <= 1.0
