"""领域层模型与协议。

包含：
- models: Provider 枚举、OutboundQuery 等请求侧模型。
- conversation: Message / ConversationState 等会话状态模型。
- credentials: API Key 存储协议。
- exceptions: 业务异常类型定义。
"""
