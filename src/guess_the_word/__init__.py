"""Guess The Word: 単語当てゲーム（Pyxel + MediaPipe 表情入力）"""

__version__ = "0.1.0"
