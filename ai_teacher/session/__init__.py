"""会话控制器与状态变更消息。"""
