"""领域层模型与协议。

包含：
- models: 统一的 Part / Content / Candidate / ServiceDescriptor 模型。
- conversation: 内容归一化与对话历史校验。
- exceptions: 业务异常类型定义。
"""
