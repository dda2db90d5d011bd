"""
Journal API — API Routes Package
=================================

Route Inventory:
    - health.py:       GET  /, GET /health                          public
    - auth.py:         /auth/sign-up/email, /auth/sign-in/email,
                       /auth/sign-out, /auth/get-session,
                       /auth/change-password                        public/bearer
    - bootstrap.py:    POST /bootstrap-admin                        public, self-gating
    - admin.py:        /admin/login, /admin/auth, /admin/logout     public
                       /admin, /admin/users[/{id}]                  admin
    - journal.py:      /journal, /journal/search, /journal/{id}     user
    - attachments.py:  /journal/{id}/attachments,
                       /attachments/{id}                            user

Routes stay thin: read the request, call a service, shape the response.
The trust level of each route is declared by its dependencies
(`require_user` / `require_admin`), never checked inline.
"""
