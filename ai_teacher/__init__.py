"""AI Teacher 顶层包。

该包提供儿童学习助手的核心实现：配置加载、领域模型、
两个 LLM Provider（OpenAI / Gemini）的请求适配、密钥存储、
以及串联语音识别、请求与朗读的会话控制器。
"""

from ai_teacher.api.service import ask, create_controller

__all__ = ["ask", "create_controller"]
