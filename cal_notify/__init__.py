"""Cal.com booking webhook mailer and two-factor setup API"""
