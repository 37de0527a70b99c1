"""领域层模型与协议。

包含：
- models: SessionContext / Contact / Message / Conversation 不可变模型。
- session: SessionContextReader，唯一的当前用户推导入口。
- ports: SessionStore / Navigator / Notifier 协作者协议。
- exceptions: 业务异常类型定义。
"""
